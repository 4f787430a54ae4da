"""
Inference port and LangChain adapter.

The orchestrator consumes an InferenceClient: a streaming function from a
transcript and tool schemas to CompletionChunk objects. The production
adapter wraps a LangChain chat model (Gemini via langchain_google_genai) and
normalizes provider-specific chunk shapes and finish reasons.

Dependencies: langchain_core, langchain_google_genai
System role: Boundary between the orchestrator and the language model
"""

import logging
from collections.abc import AsyncIterator
from enum import Enum
from typing import Any, Protocol

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)
from langchain_google_genai import ChatGoogleGenerativeAI
from pydantic import BaseModel, Field

from flowchart_ai.configs.llm import LLMSettings
from flowchart_ai.core.exceptions import (
    ConfigurationError,
    InferenceStreamError,
    ToolArgumentError,
)
from flowchart_ai.core.orchestration.tool_calls import ToolCallFragment
from flowchart_ai.models.conversation import Message, MessageRole, Transcript

logger = logging.getLogger(__name__)


class FinishReason(str, Enum):
    STOP = "stop"
    TOOL_CALLS = "tool_calls"
    LENGTH = "length"


class CompletionChunk(BaseModel):
    """
    One normalized stream chunk.

    Attributes:
        text: Incremental assistant text
        tool_call_fragments: Partial tool invocations in this chunk
        finish_reason: Set on the terminal chunk only
    """

    text: str = ""
    tool_call_fragments: list[ToolCallFragment] = Field(default_factory=list)
    finish_reason: FinishReason | None = None


class InferenceClient(Protocol):
    """Opaque streaming inference function."""

    def stream(self, transcript: Transcript, tools: list[dict[str, Any]]) -> AsyncIterator[CompletionChunk]:
        ...


_TOOL_FINISH = {"tool_calls", "function_call"}
_LENGTH_FINISH = {"length", "max_tokens"}


def normalize_finish_reason(raw: Any, saw_tool_calls: bool) -> FinishReason | None:
    """
    Map a provider finish reason to stop / tool_calls / length.

    Gemini reports STOP even when the response ended in function calls, so a
    stop that carried tool-call chunks is reported as tool_calls.
    """
    if raw is None or raw == "":
        return None
    value = str(getattr(raw, "name", raw)).lower()
    if value in _TOOL_FINISH:
        return FinishReason.TOOL_CALLS
    if value in _LENGTH_FINISH:
        return FinishReason.LENGTH
    if saw_tool_calls:
        return FinishReason.TOOL_CALLS
    if value not in {"stop", "end_turn", "finish_reason_unspecified"}:
        logger.warning(f"{__name__}:normalize_finish_reason - Unexpected finish reason {value}, treating as stop")
    return FinishReason.STOP


def chunk_text(content: Any) -> str:
    """Flatten string or content-block chunk content to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            item if isinstance(item, str) else (item.get("text", "") if isinstance(item, dict) else "")
            for item in content
        )
    return ""


def _content_blocks(message: Message) -> str | list[dict[str, Any]]:
    if message.content is None:
        return ""
    if isinstance(message.content, str):
        return message.content
    blocks: list[dict[str, Any]] = []
    for part in message.content:
        if part.type == "text":
            blocks.append({"type": "text", "text": part.text})
        else:
            blocks.append({"type": "image_url", "image_url": {"url": part.image_url.url}})
    return blocks


def _safe_args(call) -> dict[str, Any]:
    try:
        return call.parsed_arguments()
    except ToolArgumentError:
        return {}


def to_langchain_messages(transcript: Transcript) -> list[BaseMessage]:
    """
    Convert a transcript to LangChain messages.

    Args:
        transcript: Prompt transcript (system prefix included)

    Returns:
        list[BaseMessage]: System, human, AI (with tool calls) and tool messages
    """
    tool_names: dict[str, str] = {}
    converted: list[BaseMessage] = []
    for message in transcript.messages:
        if message.role == MessageRole.SYSTEM:
            converted.append(SystemMessage(content=message.text))
        elif message.role == MessageRole.USER:
            converted.append(HumanMessage(content=_content_blocks(message)))
        elif message.role == MessageRole.ASSISTANT:
            calls = message.tool_calls or []
            tool_names.update({call.id: call.name for call in calls})
            converted.append(
                AIMessage(
                    content=message.text,
                    tool_calls=[
                        {"id": call.id, "name": call.name, "args": _safe_args(call), "type": "tool_call"}
                        for call in calls
                    ],
                )
            )
        else:
            converted.append(
                ToolMessage(
                    content=message.text,
                    tool_call_id=message.tool_call_id,
                    name=tool_names.get(message.tool_call_id),
                )
            )
    return converted


class LangChainInferenceClient:
    """
    InferenceClient backed by a LangChain chat model.

    Usage:
        client = LangChainInferenceClient.from_settings(settings.llm)
        async for chunk in client.stream(transcript, TOOL_SCHEMAS):
            ...
    """

    def __init__(self, model: BaseChatModel) -> None:
        self._model = model

    @classmethod
    def from_settings(cls, settings: LLMSettings) -> "LangChainInferenceClient":
        """
        Build a Gemini-backed client.

        Raises:
            ConfigurationError: If no model credential is configured
        """
        if not settings.has_credential:
            raise ConfigurationError("API key not configured", setting="google_api_key")

        model = ChatGoogleGenerativeAI(
            model=settings.llm_model_id,
            temperature=settings.llm_temperature,
            google_api_key=settings.google_api_key.get_secret_value(),
        )
        logger.info(f"{__name__}:from_settings - Chat model ready", extra={"model": settings.llm_model_id})
        return cls(model)

    async def stream(self, transcript: Transcript, tools: list[dict[str, Any]]) -> AsyncIterator[CompletionChunk]:
        """
        Stream normalized chunks for one sub-turn.

        Yields:
            CompletionChunk: Text, fragments, and exactly one terminal finish reason

        Raises:
            InferenceStreamError: On any provider or transport failure
        """
        runnable = self._model.bind_tools(tools) if tools else self._model
        messages = to_langchain_messages(transcript)
        saw_tool_calls = False
        finished = False

        try:
            async for chunk in runnable.astream(messages):
                fragments = [
                    ToolCallFragment(
                        index=fragment.get("index"),
                        id=fragment.get("id"),
                        name=fragment.get("name"),
                        arguments=fragment.get("args") or "",
                    )
                    for fragment in getattr(chunk, "tool_call_chunks", None) or []
                ]
                saw_tool_calls = saw_tool_calls or bool(fragments)
                metadata = getattr(chunk, "response_metadata", None) or {}
                finish = normalize_finish_reason(metadata.get("finish_reason"), saw_tool_calls)
                finished = finished or finish is not None
                yield CompletionChunk(
                    text=chunk_text(chunk.content),
                    tool_call_fragments=fragments,
                    finish_reason=finish,
                )
        except Exception as e:
            logger.error(f"{__name__}:stream - Inference stream failed: {type(e).__name__}: {e}")
            raise InferenceStreamError(f"Inference stream failed: {e}") from e

        if not finished:
            yield CompletionChunk(
                finish_reason=FinishReason.TOOL_CALLS if saw_tool_calls else FinishReason.STOP
            )
