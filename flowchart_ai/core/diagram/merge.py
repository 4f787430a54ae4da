"""
Merge engine.

Reconciles synthesized elements with an existing scene. Replace mode drops
every ai-provenance element and keeps user elements untouched; extend mode
keeps everything. Both union in the new elements.

Dependencies: flowchart_ai.models.scene
System role: Scene reconciliation for synthesized diagrams
"""

from collections.abc import Iterable

from flowchart_ai.models.diagram import MergeMode
from flowchart_ai.models.scene import BoundingBox, Point, Provenance, SceneElement

PLACEMENT_MARGIN = 100.0


def bounding_box(elements: Iterable[SceneElement]) -> BoundingBox | None:
    """Box enclosing all live elements, or None when there are none."""
    live = [element for element in elements if not element.is_deleted]
    if not live:
        return None
    return BoundingBox(
        min_x=min(e.geometry.x for e in live),
        min_y=min(e.geometry.y for e in live),
        max_x=max(e.geometry.right for e in live),
        max_y=max(e.geometry.bottom for e in live),
    )


def count_ai_elements(elements: Iterable[SceneElement]) -> int:
    return sum(1 for e in elements if e.provenance == Provenance.AI and not e.is_deleted)


def has_ai_diagram(elements: Iterable[SceneElement]) -> bool:
    return count_ai_elements(elements) > 0


def placement_origin(existing: list[SceneElement], mode: MergeMode) -> Point:
    """
    Where a new diagram's top-left corner goes.

    Replace takes over the spot of the ai content it removes, falling back to
    the right of the user content. Extend goes to the right of everything.
    """
    if mode == MergeMode.REPLACE:
        ai_box = bounding_box(e for e in existing if e.provenance == Provenance.AI)
        if ai_box is not None:
            return Point(x=ai_box.min_x, y=ai_box.min_y)
        anchor = bounding_box(e for e in existing if e.provenance == Provenance.USER)
    else:
        anchor = bounding_box(existing)

    if anchor is None:
        return Point(x=0, y=0)
    return Point(x=anchor.max_x + PLACEMENT_MARGIN, y=anchor.min_y)


def merge(
    existing: list[SceneElement],
    new_elements: list[SceneElement],
    mode: MergeMode,
) -> list[SceneElement]:
    """
    Merge new elements into a scene.

    Args:
        existing: Current scene elements
        new_elements: Freshly synthesized elements
        mode: Replace or extend

    Returns:
        list[SceneElement]: Kept elements (original order) followed by new ones
    """
    if mode == MergeMode.REPLACE:
        kept = [e for e in existing if e.provenance != Provenance.AI]
    else:
        kept = list(existing)

    seen = {e.id for e in kept}
    merged = kept
    for element in new_elements:
        if element.id not in seen:
            seen.add(element.id)
            merged.append(element)
    return merged
