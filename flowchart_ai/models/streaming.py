"""
Turn event schemas and the server-sent-event wire format.

The orchestrator yields TurnEvent objects; the chat router renders them as
`data: <json>\\n\\n` lines terminated by `data: [DONE]\\n\\n`.

Dependencies: pydantic
System role: Streaming protocol schemas
"""

import json
import logging
from collections.abc import Iterable, Iterator
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from flowchart_ai.models.conversation import Transcript
from flowchart_ai.models.diagram import DiagramResult

logger = logging.getLogger(__name__)

SSE_DONE = "data: [DONE]\n\n"


class TurnEventType(str, Enum):
    """Orchestrator event types."""

    TEXT_DELTA = "text_delta"
    DIAGRAM_READY = "diagram_ready"
    CANVAS_INSPECTION_REQUESTED = "canvas_inspection_requested"
    SUSPENDED = "suspended"
    FINISHED = "finished"
    FAILED = "failed"


class WireEventType(str, Enum):
    """`type` values of SSE payloads."""

    TEXT = "text"
    TOOL_CALL = "tool-call"
    TOOL_RESULT = "tool-result"
    TOOL_ERROR = "tool-error"
    SUSPENDED = "suspended"
    FINISH = "finish"
    ERROR = "error"


class TurnEvent(BaseModel):
    """Base orchestrator event."""

    type: TurnEventType

    @property
    def terminal(self) -> bool:
        """Whether this event ends the stream."""
        return False

    def to_wire(self) -> list[dict[str, Any]]:
        """Convert to SSE JSON payloads."""
        raise NotImplementedError


class TextDelta(TurnEvent):
    type: TurnEventType = TurnEventType.TEXT_DELTA
    content: str

    def to_wire(self) -> list[dict[str, Any]]:
        return [{"type": WireEventType.TEXT.value, "content": self.content}]


class DiagramReady(TurnEvent):
    """
    A synthesize_diagram invocation was executed locally.

    Attributes:
        tool_call_id: Invocation id
        result: Spec plus synthesized elements or a conversion error
    """

    type: TurnEventType = TurnEventType.DIAGRAM_READY
    tool_call_id: str
    result: DiagramResult

    def to_wire(self) -> list[dict[str, Any]]:
        call = {
            "type": WireEventType.TOOL_CALL.value,
            "toolCallId": self.tool_call_id,
            "toolName": "synthesize_diagram",
            "args": self.result.spec.model_dump(mode="json", by_alias=True),
        }
        if not self.result.ok:
            return [
                call,
                {
                    "type": WireEventType.TOOL_ERROR.value,
                    "toolCallId": self.tool_call_id,
                    "error": self.result.error,
                },
            ]
        return [
            call,
            {
                "type": WireEventType.TOOL_RESULT.value,
                "toolCallId": self.tool_call_id,
                "result": f"Diagram synthesized with {len(self.result.elements)} elements",
                "elements": [
                    element.model_dump(mode="json", by_alias=True)
                    for element in self.result.elements
                ],
            },
        ]


class CanvasInspectionRequested(TurnEvent):
    type: TurnEventType = TurnEventType.CANVAS_INSPECTION_REQUESTED
    tool_call_id: str
    arguments: dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> list[dict[str, Any]]:
        return [
            {
                "type": WireEventType.TOOL_CALL.value,
                "toolCallId": self.tool_call_id,
                "toolName": "inspect_canvas",
                "args": self.arguments,
            }
        ]


class Suspended(TurnEvent):
    """
    The turn is waiting for host-resolved tool results.

    Attributes:
        transcript: Derived transcript to resume from (caller appends tool results)
        pending_tool_call_ids: Invocations the caller must answer
    """

    type: TurnEventType = TurnEventType.SUSPENDED
    transcript: Transcript
    pending_tool_call_ids: list[str]

    @property
    def terminal(self) -> bool:
        return True

    def to_wire(self) -> list[dict[str, Any]]:
        return [
            {
                "type": WireEventType.SUSPENDED.value,
                "transcript": [
                    message.model_dump(mode="json", by_alias=True, exclude_none=True)
                    for message in self.transcript.messages
                ],
                "pendingToolCallIds": self.pending_tool_call_ids,
            }
        ]


class Finished(TurnEvent):
    type: TurnEventType = TurnEventType.FINISHED
    text: str = ""

    @property
    def terminal(self) -> bool:
        return True

    def to_wire(self) -> list[dict[str, Any]]:
        return [{"type": WireEventType.FINISH.value, "content": self.text}]


class Failed(TurnEvent):
    """
    A failure. With a tool_call_id it is scoped to one invocation and the turn
    continues; without one it ends the turn.
    """

    type: TurnEventType = TurnEventType.FAILED
    reason: str
    tool_call_id: str | None = None

    @property
    def terminal(self) -> bool:
        return self.tool_call_id is None

    def to_wire(self) -> list[dict[str, Any]]:
        if self.tool_call_id is not None:
            return [
                {
                    "type": WireEventType.TOOL_ERROR.value,
                    "toolCallId": self.tool_call_id,
                    "error": self.reason,
                }
            ]
        return [{"type": WireEventType.ERROR.value, "error": self.reason}]


def encode_sse(payload: dict[str, Any]) -> str:
    """Render one payload as an SSE data line."""
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


def iter_sse(event: TurnEvent) -> Iterator[str]:
    """Render a turn event as SSE data lines."""
    for payload in event.to_wire():
        yield encode_sse(payload)


def iter_wire_events(lines: Iterable[str]) -> Iterator[dict[str, Any]]:
    """
    Parse an SSE line stream into payload dicts.

    Blank lines, non-data lines and malformed JSON are skipped; iteration
    stops at the [DONE] sentinel.

    Args:
        lines: Raw lines (with or without trailing newlines)

    Yields:
        dict: Decoded payloads that carry a `type`
    """
    for raw in lines:
        line = raw.strip()
        if not line.startswith("data:"):
            continue
        data = line[len("data:"):].strip()
        if data == "[DONE]":
            return
        try:
            payload = json.loads(data)
        except json.JSONDecodeError:
            logger.debug(f"{__name__}:iter_wire_events - Skipping malformed line", extra={"line": data[:200]})
            continue
        if isinstance(payload, dict) and "type" in payload:
            yield payload
