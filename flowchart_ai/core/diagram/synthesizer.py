"""
Diagram synthesizer.

Two-stage conversion of DDL text into scene elements: parse and lay out a
skeleton, then materialize it with fresh ids and provenance ai.

Dependencies: flowchart_ai.core.diagram
System role: Converts model-generated diagram text into canvas elements
"""

import logging
import uuid

from flowchart_ai.core.diagram.ddl_parser import (
    DEFAULT_MAX_EDGES,
    DEFAULT_MAX_TEXT_SIZE,
    DiagramSkeleton,
    parse_ddl,
)
from flowchart_ai.core.diagram.layout import layout
from flowchart_ai.core.exceptions import ConversionError
from flowchart_ai.models.diagram import DiagramResult, DiagramSpec
from flowchart_ai.models.scene import (
    ElementKind,
    Geometry,
    Point,
    Provenance,
    SceneElement,
)

logger = logging.getLogger(__name__)


def materialize(skeleton: DiagramSkeleton, origin: Point | None = None) -> list[SceneElement]:
    """
    Turn a laid-out skeleton into scene elements.

    Every element gets a fresh id, provenance ai and the same generation id.
    Nodes come first in declaration order, then edges.

    Args:
        skeleton: Skeleton with geometry from layout()
        origin: Top-left placement offset on the canvas

    Returns:
        list[SceneElement]: Materialized elements
    """
    origin = origin or Point(x=0, y=0)
    generation_id = uuid.uuid4().hex
    ids = {key: uuid.uuid4().hex for key in skeleton.nodes}

    elements: list[SceneElement] = []
    centers: dict[str, Point] = {}
    for key, node in skeleton.nodes.items():
        geometry = Geometry(
            x=origin.x + node.x,
            y=origin.y + node.y,
            width=node.width,
            height=node.height,
        )
        centers[key] = geometry.center
        elements.append(
            SceneElement(
                id=ids[key],
                kind=ElementKind.NODE,
                shape=node.scene_shape,
                geometry=geometry,
                text=node.label,
                provenance=Provenance.AI,
                generation_id=generation_id,
            )
        )

    for edge in skeleton.edges:
        start, end = centers[edge.source], centers[edge.target]
        dx, dy = end.x - start.x, end.y - start.y
        elements.append(
            SceneElement(
                id=uuid.uuid4().hex,
                kind=ElementKind.EDGE,
                shape="arrow" if edge.arrow else "line",
                geometry=Geometry(x=start.x, y=start.y, width=abs(dx), height=abs(dy)),
                text=edge.label,
                source_id=ids[edge.source],
                target_id=ids[edge.target],
                points=[Point(x=0, y=0), Point(x=dx, y=dy)],
                provenance=Provenance.AI,
                generation_id=generation_id,
            )
        )
    return elements


def synthesize(
    ddl_text: str,
    origin: Point | None = None,
    max_edges: int = DEFAULT_MAX_EDGES,
    max_text_size: int = DEFAULT_MAX_TEXT_SIZE,
) -> list[SceneElement]:
    """
    Convert DDL text into scene elements.

    Args:
        ddl_text: Mermaid flowchart source
        origin: Placement offset
        max_edges: Maximum number of connections
        max_text_size: Maximum source length

    Returns:
        list[SceneElement]: Nodes then edges, all provenance ai

    Raises:
        ConversionError: If the text cannot be parsed; nothing is produced
    """
    skeleton = layout(parse_ddl(ddl_text, max_edges=max_edges, max_text_size=max_text_size))
    elements = materialize(skeleton, origin)
    logger.info(
        f"{__name__}:synthesize - Synthesized diagram",
        extra={"node_count": len(skeleton.nodes), "edge_count": len(skeleton.edges)},
    )
    return elements


def synthesize_spec(spec: DiagramSpec, origin: Point | None = None) -> DiagramResult:
    """Synthesize a DiagramSpec, reporting conversion failures in the result."""
    try:
        return DiagramResult(spec=spec, elements=synthesize(spec.ddl_text, origin))
    except ConversionError as e:
        logger.warning(
            f"{__name__}:synthesize_spec - Conversion failed",
            extra={"reason": e.reason, "line": e.line},
        )
        reason = f"{e.reason} (line {e.line})" if e.line is not None else e.reason
        return DiagramResult(spec=spec, error=reason)
