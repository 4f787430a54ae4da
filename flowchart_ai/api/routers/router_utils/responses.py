"""
Router response helpers.

Builds the JSON error bodies shared by the AI endpoints.

Dependencies: fastapi, flowchart_ai.models
System role: Error/limit response formatting
"""

from fastapi.responses import JSONResponse

from flowchart_ai.models.chat import QuotaExceededResponse, UsageInfo
from flowchart_ai.models.common import ErrorResponse
from flowchart_ai.models.usage import AdmissionDecision, Identity

DEFAULT_LIMIT_MESSAGE = "Usage limit reached"


def error_response(status_code: int, error: str, message: str | None = None) -> JSONResponse:
    body = ErrorResponse(error=error, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def quota_exceeded_response(identity: Identity, decision: AdmissionDecision) -> JSONResponse:
    """
    429 response for a denied caller.

    Guests get `isGuest: true`; authenticated callers get `usageInfo` with the
    window that will reset their quota.
    """
    usage_info = None
    if not identity.is_anonymous:
        usage_info = UsageInfo(
            time_frame=decision.time_frame,
            remaining_usage=decision.remaining,
            limit=decision.limit,
            next_reset_time=decision.window_resets_at,
        )
    body = QuotaExceededResponse(
        error=decision.reason or DEFAULT_LIMIT_MESSAGE,
        is_guest=identity.is_anonymous,
        usage_info=usage_info,
    )
    return JSONResponse(
        status_code=429,
        content=body.model_dump(by_alias=True, mode="json", exclude_none=True),
    )
