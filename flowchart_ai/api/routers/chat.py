"""Flowchart chat API endpoint.

Routes:
- POST /ai/chat/flowchart - Run one assistant turn, streamed as Server-Sent Events (SSE)

Dependencies: flowchart_ai.application.services.turn_service
System role: Chat turn HTTP API with streaming
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from flowchart_ai.api.deps import get_identity, get_turn_service
from flowchart_ai.api.routers.router_utils import quota_exceeded_response
from flowchart_ai.application.services.turn_service import TurnService
from flowchart_ai.core.exceptions import QuotaExceededError
from flowchart_ai.models.chat import FlowchartChatRequest
from flowchart_ai.models.usage import Identity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai/chat", tags=["chat"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


@router.post("/flowchart")
async def flowchart_chat(
    request: FlowchartChatRequest,
    identity: Identity = Depends(get_identity),
    turn_service: TurnService = Depends(get_turn_service),
):
    """Stream one assistant turn.

    SSE Format (one JSON object per event, then a sentinel):
        data: {"type": "text", "content": "..."}
        data: {"type": "tool-call", "toolCallId": "...", "toolName": "...", "args": {...}}
        data: {"type": "tool-result", "toolCallId": "...", "result": {...}}
        data: {"type": "tool-error", "toolCallId": "...", "error": "..."}
        data: {"type": "suspended", "transcript": [...], "pendingToolCallIds": [...]}
        data: {"type": "finish", "content": "..."}
        data: {"type": "error", "error": "..."}
        data: [DONE]

    Every submission is quota-gated before any inference call. A new turn
    reserves a slot; a resume answering the pending tool calls of a suspended
    turn reuses that turn's slot.

    Args:
        request: Conversation, optional canvas state and assistant mode
        identity: Caller identity (injected)
        turn_service: Injected TurnService

    Returns:
        StreamingResponse: SSE stream of turn events

    Raises:
        429: Quota exhausted (guest or monthly limit)
        500: Chat model credential missing (via the ConfigurationError handler)
    """
    logger.info(
        f"{__name__}:flowchart_chat - START",
        extra={"identity_class": identity.identity_class.value, "message_count": len(request.messages)},
    )
    try:
        admission = await turn_service.admit(identity, request)
    except QuotaExceededError as e:
        return quota_exceeded_response(identity, e.decision)

    return StreamingResponse(
        turn_service.stream_turn(request, identity, admission),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
