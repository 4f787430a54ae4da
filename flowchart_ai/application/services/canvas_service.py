"""
Canvas service.

Applies synthesized diagrams to a scene-graph host and answers canvas
inspection requests with analyzer output.

Dependencies: flowchart_ai.core.diagram, flowchart_ai.core.canvas, flowchart_ai.boundary.scene
System role: Canvas use case orchestration
"""

import logging

from flowchart_ai.boundary.scene.host import SceneGraphHost
from flowchart_ai.core.canvas.analyzer import analyze, build_inspection_message
from flowchart_ai.core.diagram.merge import bounding_box, merge, placement_origin
from flowchart_ai.core.diagram.synthesizer import synthesize
from flowchart_ai.models.conversation import Message
from flowchart_ai.models.diagram import DiagramSpec, MergeOutcome
from flowchart_ai.models.scene import CanvasSnapshot, SceneElement

logger = logging.getLogger(__name__)


class CanvasService:
    """Canvas use cases over a scene-graph host."""

    async def apply_diagram(self, host: SceneGraphHost, spec: DiagramSpec) -> MergeOutcome:
        """
        Synthesize a diagram and merge it into the host scene.

        Read, synthesize, merge and write happen under the host's lock, so two
        merges on one document never interleave. Nothing is written when
        synthesis fails.

        Args:
            host: Scene-graph host for one document
            spec: Diagram to apply

        Returns:
            MergeOutcome: New scene, added/removed ids and the added elements' bounding box

        Raises:
            ConversionError: If the diagram text cannot be parsed
        """
        async with host.lock:
            existing = await host.get_elements()
            origin = placement_origin(existing, spec.merge_mode)
            new_elements = synthesize(spec.ddl_text, origin)
            merged = merge(existing, new_elements, spec.merge_mode)
            await host.replace_elements(merged)

        merged_ids = {element.id for element in merged}
        existing_ids = {element.id for element in existing}
        outcome = MergeOutcome(
            elements=merged,
            added_ids=[e.id for e in merged if e.id not in existing_ids],
            removed_ids=[e.id for e in existing if e.id not in merged_ids],
            bounding_box=bounding_box(new_elements),
        )
        logger.info(
            f"{__name__}:apply_diagram - Applied diagram",
            extra={
                "merge_mode": spec.merge_mode.value,
                "added": len(outcome.added_ids),
                "removed": len(outcome.removed_ids),
            },
        )
        return outcome

    def analyze(self, elements: list[SceneElement], last_synthesized_ddl: str | None = None) -> CanvasSnapshot:
        return analyze(elements, last_synthesized_ddl)

    def inspect(
        self,
        tool_call_id: str,
        elements: list[SceneElement],
        last_synthesized_ddl: str | None = None,
    ) -> Message:
        """Answer a pending inspect_canvas invocation with a tool message."""
        snapshot = analyze(elements, last_synthesized_ddl)
        return build_inspection_message(tool_call_id, snapshot)
