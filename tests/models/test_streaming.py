"""
Test suite for turn events and the SSE wire format.

System role: Verification of the streaming protocol
"""

import json

from flowchart_ai.core.diagram.synthesizer import synthesize_spec
from flowchart_ai.models.conversation import Message, MessageRole, ToolCall, Transcript
from flowchart_ai.models.diagram import DiagramSpec, MergeMode
from flowchart_ai.models.streaming import (
    SSE_DONE,
    CanvasInspectionRequested,
    DiagramReady,
    Failed,
    Finished,
    Suspended,
    TextDelta,
    encode_sse,
    iter_sse,
    iter_wire_events,
)


class TestToWire:
    """Test suite for TurnEvent.to_wire()."""

    def test_text_delta_should_render_text_payload(self) -> None:
        assert TextDelta(content="Hi").to_wire() == [{"type": "text", "content": "Hi"}]

    def test_diagram_ready_should_render_call_and_result(self) -> None:
        spec = DiagramSpec(ddl_text="flowchart TD\n  A --> B", merge_mode=MergeMode.EXTEND)
        event = DiagramReady(tool_call_id="call_1", result=synthesize_spec(spec))

        call, result = event.to_wire()

        assert call["type"] == "tool-call"
        assert call["toolName"] == "synthesize_diagram"
        assert call["args"]["ddlText"] == "flowchart TD\n  A --> B"
        assert call["args"]["mergeMode"] == "extend"
        assert result["type"] == "tool-result"
        assert result["result"] == "Diagram synthesized with 3 elements"
        assert len(result["elements"]) == 3
        assert "sourceId" in result["elements"][2]

    def test_diagram_ready_should_render_tool_error_for_failed_conversion(self) -> None:
        event = DiagramReady(tool_call_id="call_1", result=synthesize_spec(DiagramSpec(ddl_text="pie")))

        _, error = event.to_wire()

        assert error["type"] == "tool-error"
        assert error["toolCallId"] == "call_1"
        assert "pie" in error["error"]

    def test_failed_should_scope_to_invocation_when_id_present(self) -> None:
        scoped = Failed(reason="bad args", tool_call_id="call_1")
        turn = Failed(reason="boom")

        assert scoped.terminal is False
        assert scoped.to_wire() == [{"type": "tool-error", "toolCallId": "call_1", "error": "bad args"}]
        assert turn.terminal is True
        assert turn.to_wire() == [{"type": "error", "error": "boom"}]

    def test_suspended_should_carry_camel_case_transcript(self) -> None:
        transcript = Transcript(
            messages=(
                Message(role=MessageRole.USER, content="hi"),
                Message(role=MessageRole.ASSISTANT, tool_calls=[ToolCall(id="c1", name="inspect_canvas")]),
            )
        )

        (payload,) = Suspended(transcript=transcript, pending_tool_call_ids=["c1"]).to_wire()

        assert payload["type"] == "suspended"
        assert payload["pendingToolCallIds"] == ["c1"]
        assert payload["transcript"][1]["toolCalls"][0]["id"] == "c1"
        assert "content" not in payload["transcript"][1]

    def test_terminal_flags(self) -> None:
        assert Finished().terminal
        assert not TextDelta(content="").terminal
        assert not CanvasInspectionRequested(tool_call_id="c").terminal


class TestSseEncoding:
    """Test suite for SSE rendering and parsing."""

    def test_encode_sse_should_frame_json(self) -> None:
        line = encode_sse({"type": "text", "content": "héllo"})

        assert line == 'data: {"type": "text", "content": "héllo"}\n\n'

    def test_iter_sse_should_emit_one_line_per_payload(self) -> None:
        event = DiagramReady(tool_call_id="c", result=synthesize_spec(DiagramSpec(ddl_text="graph LR\n  A")))

        lines = list(iter_sse(event))

        assert len(lines) == 2
        assert all(line.startswith("data: ") and line.endswith("\n\n") for line in lines)

    def test_iter_wire_events_should_skip_noise_and_stop_at_done(self) -> None:
        lines = [
            ": keep-alive",
            "",
            encode_sse({"type": "text", "content": "a"}),
            "data: {not json",
            'data: {"no_type": true}',
            encode_sse({"type": "finish", "content": "a"}),
            SSE_DONE,
            encode_sse({"type": "text", "content": "after done"}),
        ]

        payloads = list(iter_wire_events(lines))

        assert [p["type"] for p in payloads] == ["text", "finish"]

    def test_iter_wire_events_should_parse_full_turn(self) -> None:
        events = [TextDelta(content="x"), Finished(text="x")]
        body = "".join(line for event in events for line in iter_sse(event)) + SSE_DONE

        payloads = list(iter_wire_events(body.splitlines()))

        assert payloads == [{"type": "text", "content": "x"}, {"type": "finish", "content": "x"}]
        assert json.dumps(payloads)
