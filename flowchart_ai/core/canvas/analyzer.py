"""
Canvas analyzer.

Pure function over a scene: partitions elements into node and edge entries,
clusters them spatially, and builds a rule-based natural-language summary the
model receives as canvas context.

Dependencies: flowchart_ai.models.scene
System role: Keeps the model's view of the canvas in sync with the scene
"""

import json
import math
import re
from collections.abc import Sequence

from flowchart_ai.core.diagram.merge import bounding_box
from flowchart_ai.models.conversation import Message, MessageRole
from flowchart_ai.models.scene import (
    CanvasSnapshot,
    Connection,
    EdgeEntry,
    ElementGroup,
    NodeEntry,
    Point,
    Provenance,
    SceneElement,
    Size,
    TextContent,
)

EMPTY_CANVAS_DESCRIPTION = "The canvas is currently empty with no elements."

GROUP_DISTANCE = 200.0
MAX_LISTED_TEXTS = 8
MAX_LISTED_CONNECTIONS = 3

DECISION_SHAPES = {"diamond"}
BOUNDARY_WORDS = re.compile(r"\b(start|end|begin|finish|stop)\b", re.IGNORECASE)


def _plural(count: int, noun: str) -> str:
    if count == 1:
        return f"1 {noun}"
    suffix = "es" if noun.endswith(("s", "x", "ch", "sh")) else "s"
    return f"{count} {noun}{suffix}"


def group_elements(elements: Sequence[SceneElement], threshold: float = GROUP_DISTANCE) -> list[ElementGroup]:
    """
    Greedy nearest-neighbor clustering by centroid distance.

    Each unvisited element seeds a group and pulls in every other unvisited
    element whose centroid lies within the threshold of the seed's centroid.
    """
    groups: list[ElementGroup] = []
    visited: set[str] = set()

    for seed in elements:
        if seed.id in visited:
            continue
        visited.add(seed.id)
        origin = seed.geometry.center
        members = [seed]
        for candidate in elements:
            if candidate.id in visited:
                continue
            center = candidate.geometry.center
            if math.hypot(center.x - origin.x, center.y - origin.y) <= threshold:
                members.append(candidate)
                visited.add(candidate.id)

        shapes = list(dict.fromkeys(member.shape for member in members))
        description = f"Group of {len(members)} elements ({', '.join(shapes)})"
        if any(member.text for member in members):
            description += " with text content"

        centers = [member.geometry.center for member in members]
        groups.append(
            ElementGroup(
                element_ids=[member.id for member in members],
                center=Point(
                    x=sum(c.x for c in centers) / len(centers),
                    y=sum(c.y for c in centers) / len(centers),
                ),
                description=description,
            )
        )
    return groups


def _connections(edges: list[SceneElement], by_id: dict[str, SceneElement]) -> list[Connection]:
    connections = []
    for edge in edges:
        source = by_id.get(edge.source_id) if edge.source_id else None
        target = by_id.get(edge.target_id) if edge.target_id else None
        if source is None or target is None:
            continue
        connections.append(
            Connection(
                edge_id=edge.id,
                source_id=source.id,
                target_id=target.id,
                description=(
                    f'{edge.shape} from "{source.text or source.shape}" '
                    f'to "{target.text or target.shape}"'
                ),
            )
        )
    return connections


def describe(snapshot: CanvasSnapshot) -> str:
    """Build the natural-language summary for a snapshot."""
    if snapshot.element_count == 0:
        return EMPTY_CANVAS_DESCRIPTION

    parts = [f"The canvas contains {_plural(snapshot.element_count, 'element')} in total."]

    node_shapes: dict[str, int] = {}
    for node in snapshot.nodes:
        node_shapes[node.shape] = node_shapes.get(node.shape, 0) + 1
    edge_shapes: dict[str, int] = {}
    for edge in snapshot.edges:
        edge_shapes[edge.shape] = edge_shapes.get(edge.shape, 0) + 1
    breakdown = []
    if node_shapes:
        breakdown.append(
            f"{_plural(len(snapshot.nodes), 'node')} ("
            + ", ".join(_plural(n, shape) for shape, n in node_shapes.items())
            + ")"
        )
    if edge_shapes:
        breakdown.append(
            f"{_plural(len(snapshot.edges), 'edge')} ("
            + ", ".join(_plural(n, shape) for shape, n in edge_shapes.items())
            + ")"
        )
    parts.append(f"Element types: {' and '.join(breakdown)}.")

    if snapshot.ai_element_count:
        count = snapshot.ai_element_count
        parts.append(f"{_plural(count, 'element')} {'was' if count == 1 else 'were'} AI-generated.")
    if snapshot.user_element_count:
        count = snapshot.user_element_count
        parts.append(
            f"{_plural(count, 'element')} {'was' if count == 1 else 'were'} manually added by the user."
        )

    texts = list(dict.fromkeys(item.text for item in snapshot.text_content))
    if texts:
        listed = ", ".join(f'"{text}"' for text in texts[:MAX_LISTED_TEXTS])
        more = ", and more" if len(texts) > MAX_LISTED_TEXTS else ""
        parts.append(f"Text content includes: {listed}{more}.")

    if snapshot.connections:
        count = len(snapshot.connections)
        parts.append(
            f"There {'is' if count == 1 else 'are'} {_plural(count, 'connection')} between elements."
        )
        if count <= MAX_LISTED_CONNECTIONS:
            parts.append(
                "Connections: " + "; ".join(c.description for c in snapshot.connections) + "."
            )

    unattached = len(snapshot.edges) - len(snapshot.connections)
    if unattached:
        parts.append(
            f"{_plural(unattached, 'edge')} {'is' if unattached == 1 else 'are'} "
            "not attached to elements at both ends."
        )

    if snapshot.groups:
        parts.append(f"Elements are arranged in {_plural(len(snapshot.groups), 'spatial group')}.")

    if any(node.shape in DECISION_SHAPES for node in snapshot.nodes):
        parts.append("The diagram includes decision points.")

    if snapshot.connections and not any(
        BOUNDARY_WORDS.search(item.text) for item in snapshot.text_content
    ):
        parts.append("No element is labeled as a start or end point.")

    box = snapshot.bounding_box
    if box is not None and box.width > 0 and box.height > 0:
        parts.append(
            f"The content spans approximately {round(box.width)} x {round(box.height)} pixels."
        )

    return " ".join(parts)


def analyze(elements: Sequence[SceneElement], last_synthesized_ddl: str | None = None) -> CanvasSnapshot:
    """
    Summarize a scene.

    Args:
        elements: Scene elements from the host (deleted ones are ignored)
        last_synthesized_ddl: DDL of the last synthesis, from caller session memory

    Returns:
        CanvasSnapshot: Structured breakdown plus description
    """
    live = [element for element in elements if not element.is_deleted]
    by_id = {element.id: element for element in live}

    nodes: list[NodeEntry] = []
    edges: list[SceneElement] = []
    shapes: dict[str, int] = {}
    text_content: list[TextContent] = []
    for element in live:
        shapes[element.shape] = shapes.get(element.shape, 0) + 1
        if element.text:
            text_content.append(
                TextContent(
                    element_id=element.id,
                    text=element.text,
                    position=Point(x=element.geometry.x, y=element.geometry.y),
                    shape=element.shape,
                )
            )
        if element.is_edge:
            edges.append(element)
            continue
        nodes.append(
            NodeEntry(
                id=element.id,
                shape=element.shape,
                position=Point(x=element.geometry.x, y=element.geometry.y),
                size=Size(width=element.geometry.width, height=element.geometry.height),
                text=element.text,
                provenance=element.provenance,
            )
        )

    ai_count = sum(1 for element in live if element.provenance == Provenance.AI)
    snapshot = CanvasSnapshot(
        nodes=nodes,
        edges=[
            EdgeEntry(
                id=edge.id,
                shape=edge.shape,
                source_id=edge.source_id,
                target_id=edge.target_id,
                text=edge.text,
                provenance=edge.provenance,
            )
            for edge in edges
        ],
        element_count=len(live),
        has_prior_ai_diagram=ai_count > 0,
        last_synthesized_ddl=last_synthesized_ddl,
        description="",
        elements_by_shape=shapes,
        bounding_box=bounding_box(live),
        groups=group_elements(live),
        connections=_connections(edges, by_id),
        text_content=text_content,
        ai_element_count=ai_count,
        user_element_count=len(live) - ai_count,
    )
    return snapshot.model_copy(update={"description": describe(snapshot)})


def build_inspection_result(snapshot: CanvasSnapshot) -> str:
    """Render a snapshot as the JSON content of an inspect_canvas tool result."""
    payload = {
        "description": snapshot.description,
        "elementCount": snapshot.element_count,
        "hasPriorAiDiagram": snapshot.has_prior_ai_diagram,
        "lastSynthesizedDdl": snapshot.last_synthesized_ddl,
        "elementsByShape": snapshot.elements_by_shape,
        "nodes": [
            {"id": node.id, "shape": node.shape, "text": node.text, "provenance": node.provenance.value}
            for node in snapshot.nodes
        ],
        "connections": [
            {"from": c.source_id, "to": c.target_id, "description": c.description}
            for c in snapshot.connections
        ],
    }
    return json.dumps(payload, ensure_ascii=False)


def build_inspection_message(tool_call_id: str, snapshot: CanvasSnapshot) -> Message:
    """The tool message a caller appends to resume after inspect_canvas."""
    return Message(
        role=MessageRole.TOOL,
        tool_call_id=tool_call_id,
        content=build_inspection_result(snapshot),
    )
