"""
Test suite for the LangChain inference adapter.

Tests finish-reason normalization, transcript conversion and chunk streaming
against a mocked chat model (no network).

System role: Verification of the inference boundary
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from langchain_core.messages import AIMessage, AIMessageChunk, HumanMessage, SystemMessage, ToolMessage

from flowchart_ai.configs.llm import LLMSettings
from flowchart_ai.core.exceptions import ConfigurationError, InferenceStreamError
from flowchart_ai.core.orchestration.inference import (
    FinishReason,
    LangChainInferenceClient,
    chunk_text,
    normalize_finish_reason,
    to_langchain_messages,
)
from flowchart_ai.core.orchestration.tools import TOOL_SCHEMAS
from flowchart_ai.models.conversation import ContentPart, ImageUrl, Message, MessageRole, ToolCall, Transcript

PNG_DATA_URL = "data:image/png;base64,iVBORw0KGgo="


def model_streaming(chunks: list, error: Exception | None = None) -> MagicMock:
    """Mock chat model whose bound runnable streams the given chunks."""

    async def astream(messages):
        for chunk in chunks:
            yield chunk
        if error is not None:
            raise error

    runnable = MagicMock()
    runnable.astream = astream
    model = MagicMock()
    model.bind_tools.return_value = runnable
    model.astream = astream
    return model


async def collect(client: LangChainInferenceClient, tools: list | None = None) -> list:
    transcript = Transcript(messages=(Message(role=MessageRole.USER, content="hi"),))
    return [chunk async for chunk in client.stream(transcript, TOOL_SCHEMAS if tools is None else tools)]


class TestNormalizeFinishReason:
    """Test suite for normalize_finish_reason()."""

    @pytest.mark.parametrize(
        "raw, saw_tool_calls, expected",
        [
            (None, False, None),
            ("", True, None),
            ("stop", False, FinishReason.STOP),
            ("STOP", True, FinishReason.TOOL_CALLS),
            ("tool_calls", False, FinishReason.TOOL_CALLS),
            ("MAX_TOKENS", False, FinishReason.LENGTH),
            ("length", True, FinishReason.LENGTH),
            (SimpleNamespace(name="MAX_TOKENS"), False, FinishReason.LENGTH),
            ("SAFETY", False, FinishReason.STOP),
        ],
    )
    def test_normalize_should_map_provider_reasons(self, raw, saw_tool_calls: bool, expected) -> None:
        assert normalize_finish_reason(raw, saw_tool_calls) == expected

    def test_chunk_text_should_flatten_content_blocks(self) -> None:
        assert chunk_text(["a", {"type": "text", "text": "b"}, {"type": "image"}]) == "ab"
        assert chunk_text(None) == ""


class TestToLangchainMessages:
    """Test suite for transcript conversion."""

    def test_convert_should_map_every_role(self) -> None:
        transcript = Transcript(
            messages=(
                Message(role=MessageRole.SYSTEM, content="prompt"),
                Message(
                    role=MessageRole.USER,
                    content=[
                        ContentPart(type="text", text="Transcribe this"),
                        ContentPart(type="image_url", image_url=ImageUrl(url=PNG_DATA_URL)),
                    ],
                ),
                Message(
                    role=MessageRole.ASSISTANT,
                    tool_calls=[ToolCall(id="call_1", name="inspect_canvas", arguments="{}")],
                ),
                Message(role=MessageRole.TOOL, tool_call_id="call_1", content='{"elementCount": 0}'),
            )
        )

        system, human, ai, tool = to_langchain_messages(transcript)

        assert isinstance(system, SystemMessage)
        assert isinstance(human, HumanMessage)
        assert human.content[1] == {"type": "image_url", "image_url": {"url": PNG_DATA_URL}}
        assert isinstance(ai, AIMessage)
        assert ai.tool_calls[0]["name"] == "inspect_canvas"
        assert isinstance(tool, ToolMessage)
        assert tool.tool_call_id == "call_1"
        assert tool.name == "inspect_canvas"

    def test_convert_should_tolerate_malformed_recorded_arguments(self) -> None:
        transcript = Transcript(
            messages=(
                Message(
                    role=MessageRole.ASSISTANT,
                    tool_calls=[ToolCall(id="c", name="synthesize_diagram", arguments="{broken")],
                ),
            )
        )

        (ai,) = to_langchain_messages(transcript)

        assert ai.tool_calls[0]["args"] == {}


class TestLangChainInferenceClient:
    """Test suite for LangChainInferenceClient.stream()."""

    async def test_stream_should_yield_text_and_final_stop(self) -> None:
        """Test a stream without provider finish metadata still terminates with stop."""
        client = LangChainInferenceClient(model_streaming([AIMessageChunk(content="Hel"), AIMessageChunk(content="lo")]))

        chunks = await collect(client)

        assert "".join(chunk.text for chunk in chunks) == "Hello"
        assert chunks[-1].finish_reason == FinishReason.STOP
        assert [c.finish_reason for c in chunks[:-1]] == [None, None]

    async def test_stream_should_map_tool_call_chunks(self) -> None:
        """Test Gemini-style STOP after function calls becomes tool_calls."""
        chunks = [
            AIMessageChunk(
                content="",
                tool_call_chunks=[
                    {"name": "synthesize_diagram", "args": '{"ddl_text": ', "id": "call_1", "index": 0}
                ],
            ),
            AIMessageChunk(
                content="",
                tool_call_chunks=[{"name": None, "args": '"flowchart TD"}', "id": None, "index": 0}],
                response_metadata={"finish_reason": "STOP"},
            ),
        ]
        client = LangChainInferenceClient(model_streaming(chunks))

        result = await collect(client)

        assert len(result) == 2
        first = result[0].tool_call_fragments[0]
        assert (first.index, first.id, first.name) == (0, "call_1", "synthesize_diagram")
        assert result[1].tool_call_fragments[0].arguments == '"flowchart TD"}'
        assert result[1].finish_reason == FinishReason.TOOL_CALLS

    async def test_stream_should_bind_tools_only_when_offered(self) -> None:
        model = model_streaming([AIMessageChunk(content="ok")])
        client = LangChainInferenceClient(model)

        await collect(client, tools=[])
        model.bind_tools.assert_not_called()

        await collect(client)
        model.bind_tools.assert_called_once_with(TOOL_SCHEMAS)

    async def test_stream_should_wrap_provider_errors(self) -> None:
        client = LangChainInferenceClient(
            model_streaming([AIMessageChunk(content="partial")], error=RuntimeError("connection reset"))
        )

        with pytest.raises(InferenceStreamError, match="connection reset"):
            await collect(client)


class TestFromSettings:
    """Test suite for LangChainInferenceClient.from_settings()."""

    def test_from_settings_should_require_credential(self) -> None:
        with pytest.raises(ConfigurationError, match="API key not configured"):
            LangChainInferenceClient.from_settings(LLMSettings(google_api_key=None))

    def test_from_settings_should_build_gemini_model(self) -> None:
        settings = LLMSettings(google_api_key="secret", llm_model_id="gemini-test", llm_temperature=0.2)

        with patch("flowchart_ai.core.orchestration.inference.ChatGoogleGenerativeAI") as chat_model:
            client = LangChainInferenceClient.from_settings(settings)

        chat_model.assert_called_once_with(model="gemini-test", temperature=0.2, google_api_key="secret")
        assert isinstance(client, LangChainInferenceClient)
