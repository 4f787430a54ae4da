"""
Test doubles and builders shared across the suite.

Provides: ScriptedInferenceClient, chunk builders, scene element builders
Dependencies: flowchart_ai
System role: Test infrastructure
"""

from collections.abc import AsyncIterator
from typing import Any

from flowchart_ai.core.orchestration.inference import CompletionChunk, FinishReason
from flowchart_ai.core.orchestration.tool_calls import ToolCallFragment
from flowchart_ai.models.conversation import Transcript
from flowchart_ai.models.scene import ElementKind, Geometry, Provenance, SceneElement


class ScriptedInferenceClient:
    """
    InferenceClient that replays one scripted chunk list per sub-turn.

    Records the prompt transcript of every call so tests can assert on what
    the model was shown.
    """

    def __init__(self, scripts: list[list[CompletionChunk]], fail_with: Exception | None = None) -> None:
        self.scripts = list(scripts)
        self.fail_with = fail_with
        self.calls: list[Transcript] = []
        self.closed = 0

    async def stream(self, transcript: Transcript, tools: list[dict[str, Any]]) -> AsyncIterator[CompletionChunk]:
        self.calls.append(transcript)
        if self.fail_with is not None:
            raise self.fail_with
        script = self.scripts.pop(0)
        try:
            for chunk in script:
                yield chunk
        finally:
            self.closed += 1


def text_chunks(*parts: str) -> list[CompletionChunk]:
    """A sub-turn that streams text and stops."""
    chunks = [CompletionChunk(text=part) for part in parts]
    chunks.append(CompletionChunk(finish_reason=FinishReason.STOP))
    return chunks


def tool_chunks(call_id: str, name: str, arguments: str, index: int = 0, text: str = "") -> list[CompletionChunk]:
    """A sub-turn that issues one tool call, arguments split over two fragments."""
    middle = len(arguments) // 2
    chunks = [CompletionChunk(text=text)] if text else []
    chunks += [
        CompletionChunk(
            tool_call_fragments=[
                ToolCallFragment(index=index, id=call_id, name=name, arguments=arguments[:middle])
            ]
        ),
        CompletionChunk(tool_call_fragments=[ToolCallFragment(index=index, arguments=arguments[middle:])]),
        CompletionChunk(finish_reason=FinishReason.TOOL_CALLS),
    ]
    return chunks


def make_node(
    element_id: str,
    x: float = 0,
    y: float = 0,
    width: float = 100,
    height: float = 50,
    text: str | None = None,
    shape: str = "rectangle",
    provenance: Provenance = Provenance.USER,
    is_deleted: bool = False,
) -> SceneElement:
    return SceneElement(
        id=element_id,
        kind=ElementKind.NODE,
        shape=shape,
        geometry=Geometry(x=x, y=y, width=width, height=height),
        text=text,
        provenance=provenance,
        is_deleted=is_deleted,
    )


def make_edge(
    element_id: str,
    source_id: str | None,
    target_id: str | None,
    x: float = 0,
    y: float = 0,
    provenance: Provenance = Provenance.USER,
) -> SceneElement:
    return SceneElement(
        id=element_id,
        kind=ElementKind.EDGE,
        shape="arrow",
        geometry=Geometry(x=x, y=y, width=10, height=10),
        source_id=source_id,
        target_id=target_id,
        provenance=provenance,
    )
