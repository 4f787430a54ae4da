"""
Usage admission domain models and schemas.

Identity classes, quota policies, ledger entries, admission decisions and the
usage API contracts.

Dependencies: pydantic
System role: Usage/quota API contracts
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from flowchart_ai.models.common import CamelModel


class IdentityClass(str, Enum):
    """Caller identity classes."""

    ANONYMOUS = "anonymous"
    AUTHENTICATED_FREE = "authenticated_free"
    AUTHENTICATED_SUBSCRIBER = "authenticated_subscriber"


class WindowKind(str, Enum):
    """Quota counting windows."""

    EVER = "ever"
    CALENDAR_MONTH = "calendar_month"


class LedgerStatus(str, Enum):
    """
    Lifecycle of a ledger row.

    Turn admission inserts a RESERVED row holding a quota slot. The row moves
    to SUSPENDED while host tool results are outstanding, to FINISHED when an
    authenticated turn ends (RECORDED once the caller reports it), or to
    RELEASED when the turn fails, giving the slot back.
    """

    RESERVED = "reserved"
    SUSPENDED = "suspended"
    FINISHED = "finished"
    RECORDED = "recorded"
    RELEASED = "released"


class UsageType(str, Enum):
    FLOWCHART_GENERATION = "flowchart_generation"
    CANVAS_ANALYSIS = "canvas_analysis"


class Identity(BaseModel):
    """
    Resolved caller identity.

    Attributes:
        identity_class: Policy-selecting class
        key: Ledger key (hashed fingerprint or account id)
        user_id: Authenticated account id, None for anonymous callers
    """

    model_config = ConfigDict(frozen=True)

    identity_class: IdentityClass
    key: str = Field(min_length=1)
    user_id: str | None = None

    @property
    def is_anonymous(self) -> bool:
        return self.identity_class == IdentityClass.ANONYMOUS


class QuotaPolicy(BaseModel):
    """Window and limit for one identity class. Selected at evaluation time, never stored."""

    model_config = ConfigDict(frozen=True)

    window_kind: WindowKind
    limit: int = Field(ge=0)


class UsageLedgerEntry(BaseModel):
    """Append-only ledger row as seen by the admission controller."""

    identity_key: str
    recorded_at: datetime
    success: bool = True
    usage_type: UsageType = UsageType.FLOWCHART_GENERATION


class AdmissionDecision(CamelModel):
    """
    Result of evaluating an identity against its quota.

    Attributes:
        allowed: Whether a turn may proceed
        remaining: max(0, limit - used)
        limit: Policy limit
        used: Successful entries counted in the window
        window_kind: Policy window
        window_resets_at: First instant of the next window (None for "ever")
        reason: Denial explanation
    """

    identity_class: IdentityClass
    allowed: bool
    remaining: int
    limit: int
    used: int
    window_kind: WindowKind
    window_resets_at: datetime | None = None
    reason: str | None = None

    @property
    def time_frame(self) -> str | None:
        return "monthly" if self.window_kind == WindowKind.CALENDAR_MONTH else None


class RecordOutcome(BaseModel):
    """Result of a record_usage call."""

    recorded: bool
    decision: AdmissionDecision
    entry_id: uuid.UUID | None = None


class Admission(BaseModel):
    """
    An admitted turn submission.

    Attributes:
        decision: Quota decision after the reservation
        reservation_id: Ledger row holding the turn's slot
        resumed: Whether a suspended turn was resumed instead of a new slot claimed
    """

    decision: AdmissionDecision
    reservation_id: uuid.UUID | None = None
    resumed: bool = False


class UsageStats(CamelModel):
    today: int = 0
    this_month: int = 0
    total: int = 0


class UsageLimits(CamelModel):
    can_use: bool
    reason: str | None = None
    remaining_usage: int
    limit: int
    time_frame: str | None = None
    next_reset_time: datetime | None = None


class UsageResponse(CamelModel):
    """Response schema for the quota query endpoint."""

    stats: UsageStats
    limits: UsageLimits
    plan_level: str


class UsageRecordRequest(CamelModel):
    """Request schema for recording a completed turn."""

    type: UsageType = UsageType.FLOWCHART_GENERATION
    success: bool = True
    metadata: dict[str, Any] = Field(default_factory=dict)


class UsageRecordResponse(BaseModel):
    success: bool
