"""
Chat domain models and schemas.

Request/response schemas for the flowchart chat endpoint.

Dependencies: pydantic
System role: Chat API contracts
"""

from datetime import datetime

from pydantic import Field

from flowchart_ai.models.common import CamelModel
from flowchart_ai.models.conversation import AssistantMode, Message, Transcript


class FlowchartChatRequest(CamelModel):
    """Request schema for a flowchart chat turn."""

    messages: list[Message] = Field(min_length=1, description="Conversation so far, oldest first")
    canvas_state: str | None = Field(default=None, description="Current canvas description")
    mode: AssistantMode = Field(default=AssistantMode.TEXT_TO_FLOWCHART, description="Assistant mode")

    def to_transcript(self) -> Transcript:
        return Transcript(messages=tuple(self.messages))


class UsageInfo(CamelModel):
    time_frame: str | None = None
    remaining_usage: int
    limit: int
    next_reset_time: datetime | None = None


class QuotaExceededResponse(CamelModel):
    """429 body distinguishing guest limits from authenticated monthly limits."""

    error: str
    is_guest: bool = False
    usage_info: UsageInfo | None = None
