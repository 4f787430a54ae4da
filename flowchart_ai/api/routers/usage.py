"""
Usage API endpoints.

Routes:
- GET /ai/usage - Usage stats, current limits and plan level
- POST /ai/usage/record - Record a usage event

Both routes require an authenticated caller; guest usage is recorded by the
chat endpoint itself.

Dependencies: flowchart_ai.application.services.usage_service
System role: Usage/quota HTTP API
"""

import logging

from fastapi import APIRouter, Depends

from flowchart_ai.api.deps import get_identity, get_settings_dependency, get_usage_service
from flowchart_ai.api.routers.router_utils import error_response, quota_exceeded_response
from flowchart_ai.application.services.usage_service import UsageService
from flowchart_ai.configs import Settings
from flowchart_ai.models.usage import (
    Identity,
    IdentityClass,
    UsageLimits,
    UsageRecordRequest,
    UsageRecordResponse,
    UsageResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai/usage", tags=["usage"])


def plan_level(identity: Identity) -> str:
    return "subscriber" if identity.identity_class == IdentityClass.AUTHENTICATED_SUBSCRIBER else "free"


@router.get("", response_model=UsageResponse, response_model_by_alias=True)
async def get_usage(
    identity: Identity = Depends(get_identity),
    usage_service: UsageService = Depends(get_usage_service),
):
    """
    Get usage statistics and limits for the authenticated caller.

    Returns:
        UsageResponse: {stats, limits, planLevel}

    Raises:
        401: Anonymous caller
    """
    if identity.is_anonymous:
        return error_response(401, "Authentication required", "Please log in to view AI usage")

    stats = await usage_service.get_stats(identity)
    decision = await usage_service.get_decision(identity)
    return UsageResponse(
        stats=stats,
        limits=UsageLimits(
            can_use=decision.allowed,
            reason=decision.reason,
            remaining_usage=decision.remaining,
            limit=decision.limit,
            time_frame=decision.time_frame,
            next_reset_time=decision.window_resets_at,
        ),
        plan_level=plan_level(identity),
    )


@router.post("/record", response_model=UsageRecordResponse)
async def record_usage(
    request: UsageRecordRequest,
    identity: Identity = Depends(get_identity),
    usage_service: UsageService = Depends(get_usage_service),
    settings: Settings = Depends(get_settings_dependency),
):
    """
    Record a usage event for the authenticated caller.

    Args:
        request: {type, success, metadata}

    Returns:
        UsageRecordResponse: {success: true}

    Raises:
        401: Anonymous caller
        429: No quota slot left in the current window
    """
    if identity.is_anonymous:
        return error_response(401, "Unauthorized")

    outcome = await usage_service.record_usage(
        identity,
        request.type,
        success=request.success,
        metadata=request.metadata,
        model=settings.llm.llm_model_id,
        tokens_used=0,
    )
    if not outcome.recorded:
        return quota_exceeded_response(identity, outcome.decision)
    return UsageRecordResponse(success=True)
