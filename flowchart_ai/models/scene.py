"""
Scene graph domain models.

Scene elements as owned by the canvas host, and the derived read-only
CanvasSnapshot produced by the canvas analyzer.

Dependencies: pydantic
System role: Canvas data contracts
"""

from enum import Enum

from pydantic import ConfigDict, Field, model_validator

from flowchart_ai.models.common import CamelModel


class ElementKind(str, Enum):
    """Scene element kinds."""

    NODE = "node"
    EDGE = "edge"


class Provenance(str, Enum):
    """Who created a scene element. Set at creation, never changed."""

    AI = "ai"
    USER = "user"


class Point(CamelModel):
    x: float
    y: float


class Geometry(CamelModel):
    """Axis-aligned placement of an element."""

    model_config = ConfigDict(frozen=True)

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def center(self) -> Point:
        return Point(x=self.x + self.width / 2, y=self.y + self.height / 2)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


class SceneElement(CamelModel):
    """
    A node or edge placed on the drawing surface.

    Attributes:
        id: Host-recognized element id
        kind: Node or edge
        shape: Host shape type (rectangle, ellipse, diamond, arrow, ...)
        geometry: Position and size
        text: Optional label
        source_id: Bound start element (edges only)
        target_id: Bound end element (edges only)
        points: Polyline points relative to the geometry origin (edges only)
        provenance: Creator tag used by replace-merge
        generation_id: Synthesis batch that produced the element
        is_deleted: Soft-delete marker set by the host
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    kind: ElementKind = ElementKind.NODE
    shape: str = "rectangle"
    geometry: Geometry = Field(default_factory=Geometry)
    text: str | None = None
    source_id: str | None = None
    target_id: str | None = None
    points: list[Point] | None = None
    provenance: Provenance = Provenance.USER
    generation_id: str | None = None
    is_deleted: bool = False

    @model_validator(mode="after")
    def _check_endpoints(self) -> "SceneElement":
        if self.kind == ElementKind.NODE and (self.source_id or self.target_id):
            raise ValueError("only edges may carry endpoints")
        return self

    @property
    def is_edge(self) -> bool:
        return self.kind == ElementKind.EDGE


class BoundingBox(CamelModel):
    """Axis-aligned box enclosing a set of elements."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Point:
        return Point(x=(self.min_x + self.max_x) / 2, y=(self.min_y + self.max_y) / 2)


class Size(CamelModel):
    width: float
    height: float


class NodeEntry(CamelModel):
    """Analyzer view of a non-edge element."""

    id: str
    shape: str
    position: Point
    size: Size
    text: str | None = None
    provenance: Provenance


class EdgeEntry(CamelModel):
    """Analyzer view of an edge element. Endpoints are None when unbound."""

    id: str
    shape: str
    source_id: str | None = None
    target_id: str | None = None
    text: str | None = None
    provenance: Provenance


class ElementGroup(CamelModel):
    """Spatial cluster of elements."""

    element_ids: list[str]
    center: Point
    description: str


class Connection(CamelModel):
    """An edge whose two endpoints both exist in the scene."""

    edge_id: str
    source_id: str = Field(alias="from")
    target_id: str = Field(alias="to")
    description: str


class TextContent(CamelModel):
    element_id: str
    text: str
    position: Point
    shape: str


class CanvasSnapshot(CamelModel):
    """
    Read-only summary of a scene, recomputed on demand.

    Attributes:
        nodes: Node entries in scene order
        edges: Edge entries in scene order
        element_count: Number of live (non-deleted) elements
        has_prior_ai_diagram: Whether any live element has provenance ai
        last_synthesized_ddl: Caller-supplied DDL of the last synthesis
        description: Rule-based natural-language summary
    """

    nodes: list[NodeEntry] = Field(default_factory=list)
    edges: list[EdgeEntry] = Field(default_factory=list)
    element_count: int = 0
    has_prior_ai_diagram: bool = False
    last_synthesized_ddl: str | None = None
    description: str
    elements_by_shape: dict[str, int] = Field(default_factory=dict)
    bounding_box: BoundingBox | None = None
    groups: list[ElementGroup] = Field(default_factory=list)
    connections: list[Connection] = Field(default_factory=list)
    text_content: list[TextContent] = Field(default_factory=list)
    ai_element_count: int = 0
    user_element_count: int = 0
