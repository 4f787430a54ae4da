"""
Diagram synthesis and canvas API schemas.

Request/response schemas for diagram synthesis, merge and canvas analysis.

Dependencies: pydantic
System role: Diagram API contracts
"""

from enum import Enum

from pydantic import Field

from flowchart_ai.models.common import CamelModel
from flowchart_ai.models.scene import BoundingBox, SceneElement


class MergeMode(str, Enum):
    """How synthesized elements combine with the existing scene."""

    REPLACE = "replace"
    EXTEND = "extend"


class DiagramSpec(CamelModel):
    """Arguments of a synthesize_diagram invocation."""

    ddl_text: str = Field(min_length=1, description="Diagram description text (Mermaid flowchart)")
    merge_mode: MergeMode = Field(default=MergeMode.REPLACE, description="Merge policy")
    description: str = Field(default="", description="Short summary of the diagram")


class DiagramResult(CamelModel):
    """Outcome of synthesizing a DiagramSpec. Exactly one of elements/error is meaningful."""

    spec: DiagramSpec
    elements: list[SceneElement] = Field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class MergeOutcome(CamelModel):
    """Scene after a merge, with enough geometry to re-frame the view."""

    elements: list[SceneElement]
    added_ids: list[str]
    removed_ids: list[str]
    bounding_box: BoundingBox | None = None


class AnalyzeRequest(CamelModel):
    """Request schema for canvas analysis."""

    elements: list[SceneElement] = Field(default_factory=list)
    last_synthesized_ddl: str | None = None


class InspectRequest(AnalyzeRequest):
    """Request schema for answering a pending inspect_canvas invocation."""

    tool_call_id: str = Field(min_length=1)


class MergeRequest(CamelModel):
    """Request schema for applying a diagram to a scene."""

    elements: list[SceneElement] = Field(default_factory=list)
    diagram: DiagramSpec
