"""
Conversation transcript schemas.

Messages exchanged with the language model, their tool calls, and the
immutable Transcript that a turn derives new copies of for each continuation.

Dependencies: pydantic
System role: Conversation data contracts
"""

import base64
import binascii
import json
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from flowchart_ai.core.exceptions import ToolArgumentError
from flowchart_ai.models.common import CamelModel

SUPPORTED_IMAGE_FORMATS = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/gif",
)

MAX_IMAGE_BYTES = 5 * 1024 * 1024


class MessageRole(str, Enum):
    """Transcript message roles."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class AssistantMode(str, Enum):
    """Assistant modes selecting the system prompt."""

    TEXT_TO_FLOWCHART = "text_to_flowchart"
    IMAGE_TO_FLOWCHART = "image_to_flowchart"


class ImageUrl(BaseModel):
    """Image reference: http(s) URL or base64 data URL."""

    url: str

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        if value.startswith(("http://", "https://")):
            return value
        if not value.startswith("data:"):
            raise ValueError("Image URL must be http(s) or a data URL")

        header, _, payload = value.partition(",")
        mime_type = header[len("data:"):].split(";")[0].lower()
        if mime_type not in SUPPORTED_IMAGE_FORMATS:
            raise ValueError(
                f"Unsupported file format: {mime_type}. "
                f"Supported formats: {', '.join(SUPPORTED_IMAGE_FORMATS)}"
            )
        try:
            size = len(base64.b64decode(payload, validate=True))
        except (binascii.Error, ValueError) as e:
            raise ValueError("Image data URL is not valid base64") from e
        if size > MAX_IMAGE_BYTES:
            raise ValueError(
                f"File size too large: {size / 1024 / 1024:.2f}MB. "
                f"Maximum allowed: {MAX_IMAGE_BYTES // 1024 // 1024}MB"
            )
        return value


class ContentPart(BaseModel):
    """One part of a multimodal message (OpenAI content-part shape)."""

    type: Literal["text", "image_url"]
    text: str | None = None
    image_url: ImageUrl | None = None

    @model_validator(mode="after")
    def _check_payload(self) -> "ContentPart":
        if self.type == "text" and self.text is None:
            raise ValueError("text part requires 'text'")
        if self.type == "image_url" and self.image_url is None:
            raise ValueError("image_url part requires 'image_url'")
        return self


class ToolCall(CamelModel):
    """
    A completed tool invocation as recorded on an assistant message.

    Attributes:
        id: Opaque invocation id assigned by the model
        name: Tool name
        arguments: Raw JSON argument string, exactly as accumulated from the stream
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    arguments: str = "{}"

    def parsed_arguments(self) -> dict[str, Any]:
        """
        Decode the argument string.

        Returns:
            dict: Parsed arguments (empty dict for blank strings)

        Raises:
            ToolArgumentError: If the string is not a JSON object
        """
        if not self.arguments.strip():
            return {}
        try:
            parsed = json.loads(self.arguments)
        except json.JSONDecodeError as e:
            raise ToolArgumentError(
                f"Invalid arguments for {self.name}: {e.msg}",
                tool_call_id=self.id,
                tool_name=self.name,
            ) from e
        if not isinstance(parsed, dict):
            raise ToolArgumentError(
                f"Arguments for {self.name} must be a JSON object",
                tool_call_id=self.id,
                tool_name=self.name,
            )
        return parsed


class Message(CamelModel):
    """Single transcript message."""

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str | list[ContentPart] | None = None
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None

    @model_validator(mode="after")
    def _check_role_fields(self) -> "Message":
        if self.role == MessageRole.TOOL and not self.tool_call_id:
            raise ValueError("tool messages require 'toolCallId'")
        if self.tool_calls and self.role != MessageRole.ASSISTANT:
            raise ValueError("only assistant messages may carry tool calls")
        return self

    @property
    def text(self) -> str:
        """Concatenated text content, ignoring image parts."""
        if self.content is None:
            return ""
        if isinstance(self.content, str):
            return self.content
        return "".join(part.text or "" for part in self.content if part.type == "text")

    @property
    def has_image(self) -> bool:
        return isinstance(self.content, list) and any(
            part.type == "image_url" for part in self.content
        )


class Transcript(BaseModel):
    """
    Ordered, immutable message sequence for one logical turn.

    Continuations never mutate a transcript; they derive a new one via extend().
    """

    model_config = ConfigDict(frozen=True)

    messages: tuple[Message, ...] = Field(default_factory=tuple)

    def extend(self, *messages: Message) -> "Transcript":
        """Return a new transcript with messages appended."""
        return Transcript(messages=self.messages + tuple(messages))

    def pending_tool_call_ids(self) -> list[str]:
        """
        Tool-call ids issued by assistant messages with no later tool result.

        Returns:
            list[str]: Unanswered ids, in issue order
        """
        pending: list[str] = []
        for message in self.messages:
            if message.role == MessageRole.ASSISTANT and message.tool_calls:
                pending.extend(call.id for call in message.tool_calls)
            elif message.role == MessageRole.TOOL and message.tool_call_id in pending:
                pending.remove(message.tool_call_id)
        return pending

    def is_resume(self) -> bool:
        """Whether this transcript continues a suspended turn (ends in tool results)."""
        return bool(self.messages) and self.messages[-1].role == MessageRole.TOOL

    def resumed_tool_call_ids(self) -> list[str]:
        """Tool-call ids answered by the trailing run of tool messages."""
        ids: list[str] = []
        for message in reversed(self.messages):
            if message.role != MessageRole.TOOL:
                break
            ids.append(message.tool_call_id)
        ids.reverse()
        return ids

    def __len__(self) -> int:
        return len(self.messages)
