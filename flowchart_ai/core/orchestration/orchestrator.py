"""
Conversation orchestrator.

Runs one turn as a sequence of streamed sub-turns. Text is re-emitted as it
arrives; tool-call fragments are accumulated until the stream finishes with
`tool_calls`. Locally resolvable invocations (synthesize_diagram) are executed
and answered with synthetic tool results, after which a continuation sub-turn
is opened. Host-resolvable invocations (inspect_canvas) suspend the turn: the
caller resumes by re-submitting the derived transcript plus its own tool
results.

Flow:
    STREAMING -> tool_calls -> EXECUTING_LOCAL -> CONTINUING -> STREAMING
    STREAMING -> tool_calls with a host tool -> SUSPENDED
    STREAMING -> stop -> DONE

Dependencies: flowchart_ai.core.diagram, flowchart_ai.core.orchestration
System role: Central state machine of the flowchart assistant
"""

import json
import logging
from collections import Counter
from collections.abc import AsyncIterator, Callable
from contextlib import aclosing
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from flowchart_ai.core.diagram.synthesizer import synthesize_spec
from flowchart_ai.core.exceptions import ToolArgumentError, TranscriptError
from flowchart_ai.core.orchestration.inference import (
    CompletionChunk,
    FinishReason,
    InferenceClient,
)
from flowchart_ai.core.orchestration.prompts import build_prompt
from flowchart_ai.core.orchestration.tool_calls import ToolCallAccumulator
from flowchart_ai.core.orchestration.tools import (
    HOST_TOOLS,
    SYNTHESIZE_DIAGRAM,
    TOOL_SCHEMAS,
)
from flowchart_ai.models.conversation import (
    AssistantMode,
    Message,
    MessageRole,
    ToolCall,
    Transcript,
)
from flowchart_ai.models.diagram import DiagramResult, DiagramSpec
from flowchart_ai.models.streaming import (
    CanvasInspectionRequested,
    DiagramReady,
    Failed,
    Finished,
    Suspended,
    TextDelta,
    TurnEvent,
)
from flowchart_ai.models.usage import Identity

logger = logging.getLogger(__name__)

CONTINUATION_LIMIT_REASON = "continuation limit reached"


def validate_transcript(transcript: Transcript) -> None:
    """
    Enforce the resume contract.

    Every tool-call id issued by an assistant message must be answered by
    exactly one later tool message, and every tool message must answer an
    earlier call.

    Raises:
        TranscriptError: On a missing, duplicate or orphan tool result
    """
    if not transcript.messages:
        raise TranscriptError("Transcript is empty")

    issued: set[str] = set()
    answered: Counter[str] = Counter()
    for message in transcript.messages:
        if message.role == MessageRole.ASSISTANT and message.tool_calls:
            issued.update(call.id for call in message.tool_calls)
        elif message.role == MessageRole.TOOL:
            if message.tool_call_id not in issued:
                raise TranscriptError(
                    f"Tool result '{message.tool_call_id}' does not answer an earlier tool call"
                )
            answered[message.tool_call_id] += 1

    duplicates = sorted(call_id for call_id, count in answered.items() if count > 1)
    if duplicates:
        raise TranscriptError(f"Tool calls answered more than once: {', '.join(duplicates)}")

    missing = transcript.pending_tool_call_ids()
    if missing:
        raise TranscriptError(
            f"Transcript is missing tool results for: {', '.join(missing)}",
            missing_tool_call_ids=missing,
        )


def tool_result_message(call: ToolCall, success: bool, message: str, **extra: Any) -> Message:
    """Synthetic tool result appended on behalf of a locally handled invocation."""
    payload = {"success": success, "message": message, **extra}
    return Message(
        role=MessageRole.TOOL,
        tool_call_id=call.id,
        content=json.dumps(payload, ensure_ascii=False),
    )


class _SubTurn:
    """Mutable accumulation state for one streamed sub-turn."""

    def __init__(self) -> None:
        self.text_parts: list[str] = []
        self.accumulator = ToolCallAccumulator()
        self.finish_reason: FinishReason | None = None
        self.chunk_count = 0

    @property
    def text(self) -> str:
        return "".join(self.text_parts)


class ConversationOrchestrator:
    """
    Drives a turn from transcript to terminal event.

    Stateless between turns and between the two phases of a suspended turn;
    everything needed to resume lives in the transcript.
    """

    def __init__(
        self,
        inference: InferenceClient,
        max_continuations: int = 4,
        tools: list[dict[str, Any]] | None = None,
        synthesizer: Callable[[DiagramSpec], DiagramResult] = synthesize_spec,
    ) -> None:
        """
        Initialize orchestrator.

        Args:
            inference: Streaming inference client
            max_continuations: Automatic continuation sub-turns allowed per turn
            tools: Tool schemas offered to the model
            synthesizer: DiagramSpec executor for synthesize_diagram
        """
        self._inference = inference
        self._max_continuations = max_continuations
        self._tools = tools if tools is not None else TOOL_SCHEMAS
        self._synthesize = synthesizer

    async def run_turn(
        self,
        transcript: Transcript,
        identity: Identity | None = None,
        mode: AssistantMode = AssistantMode.TEXT_TO_FLOWCHART,
        canvas_state: str | None = None,
    ) -> AsyncIterator[TurnEvent]:
        """
        Run one turn.

        Args:
            transcript: Conversation without system prompt (resume transcripts included)
            identity: Caller identity, for log context
            mode: Assistant mode selecting the system prompt
            canvas_state: Canvas description injected as context

        Yields:
            TurnEvent: TextDelta, DiagramReady, CanvasInspectionRequested,
            per-invocation Failed, then exactly one of Finished, Suspended or Failed
        """
        log_context = {
            "identity_class": identity.identity_class.value if identity else None,
            "message_count": len(transcript),
        }
        logger.info(f"{__name__}:run_turn - START", extra=log_context)

        try:
            validate_transcript(transcript)
        except TranscriptError as e:
            logger.warning(f"{__name__}:run_turn - Rejected transcript: {e.message}", extra=log_context)
            yield Failed(reason=e.message)
            return

        conversation = transcript
        for sub_turn in range(self._max_continuations + 1):
            state = _SubTurn()
            prompt = build_prompt(conversation, mode, canvas_state)
            try:
                async with aclosing(self._inference.stream(prompt, self._tools)) as stream:
                    async for chunk in stream:
                        delta = self._consume(chunk, state)
                        if delta:
                            yield TextDelta(content=delta)
            except Exception as e:
                logger.exception(
                    f"{__name__}:run_turn - Inference stream failed: {type(e).__name__}",
                    extra={**log_context, "sub_turn": sub_turn},
                )
                yield Failed(reason=str(e) or type(e).__name__)
                return

            logger.info(
                f"{__name__}:run_turn - Sub-turn {sub_turn} finished",
                extra={
                    **log_context,
                    "finish_reason": state.finish_reason.value if state.finish_reason else None,
                    "chunks": state.chunk_count,
                    "tool_slots": len(state.accumulator),
                },
            )

            if state.finish_reason != FinishReason.TOOL_CALLS or not len(state.accumulator):
                if len(state.accumulator):
                    yield Failed(reason="Model response ended before its tool calls completed")
                else:
                    yield Finished(text=state.text)
                return

            calls = state.accumulator.complete()
            conversation = conversation.extend(
                Message(role=MessageRole.ASSISTANT, content=state.text or None, tool_calls=calls)
            )

            host_pending: list[str] = []
            for call in calls:
                if call.name in HOST_TOOLS:
                    try:
                        arguments = call.parsed_arguments()
                    except ToolArgumentError as e:
                        yield Failed(reason=e.message, tool_call_id=call.id)
                        conversation = conversation.extend(tool_result_message(call, False, e.message))
                        continue
                    host_pending.append(call.id)
                    yield CanvasInspectionRequested(tool_call_id=call.id, arguments=arguments)
                    continue

                events, result = self._execute_local(call)
                for event in events:
                    yield event
                conversation = conversation.extend(result)

            if host_pending:
                logger.info(
                    f"{__name__}:run_turn - Suspended for host tools",
                    extra={**log_context, "pending": host_pending},
                )
                yield Suspended(transcript=conversation, pending_tool_call_ids=host_pending)
                return

        logger.warning(f"{__name__}:run_turn - Continuation limit reached", extra=log_context)
        yield Failed(reason=CONTINUATION_LIMIT_REASON)

    @staticmethod
    def _consume(chunk: CompletionChunk, state: _SubTurn) -> str:
        state.chunk_count += 1
        for fragment in chunk.tool_call_fragments:
            state.accumulator.add(fragment)
        if chunk.finish_reason is not None:
            state.finish_reason = chunk.finish_reason
        if chunk.text:
            state.text_parts.append(chunk.text)
        return chunk.text

    def _execute_local(self, call: ToolCall) -> tuple[list[TurnEvent], Message]:
        """Run a locally resolvable invocation; returns events to emit and its tool result."""
        if call.name != SYNTHESIZE_DIAGRAM:
            reason = f"Unknown tool '{call.name}'"
            logger.warning(f"{__name__}:_execute_local - {reason}", extra={"tool_call_id": call.id})
            return [Failed(reason=reason, tool_call_id=call.id)], tool_result_message(call, False, reason)

        try:
            spec = DiagramSpec.model_validate(call.parsed_arguments())
        except ToolArgumentError as e:
            return [Failed(reason=e.message, tool_call_id=call.id)], tool_result_message(call, False, e.message)
        except PydanticValidationError as e:
            error = e.errors()[0]
            field = ".".join(str(part) for part in error.get("loc", ()))
            reason = f"Invalid arguments for {SYNTHESIZE_DIAGRAM}: {field} {error.get('msg', '')}".strip()
            return [Failed(reason=reason, tool_call_id=call.id)], tool_result_message(call, False, reason)

        result = self._synthesize(spec)
        event = DiagramReady(tool_call_id=call.id, result=result)
        if result.ok:
            message = tool_result_message(
                call,
                True,
                "Diagram synthesized and sent to the canvas",
                elementCount=len(result.elements),
                mergeMode=spec.merge_mode.value,
            )
        else:
            message = tool_result_message(
                call,
                False,
                f"Diagram conversion failed: {result.error}. Fix the diagram text and call "
                f"{SYNTHESIZE_DIAGRAM} again.",
            )
        return [event], message
