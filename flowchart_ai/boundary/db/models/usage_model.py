"""
Usage ledger ORM model.

Log of AI usage events. After insert only the reservation state of a turn
changes; rows are removed only by the anonymous retention purge. Quota is computed by
counting successful rows in the current window, never by mutating a counter.

A successful row claims a slot in 1..limit of its (identity_key, window_key)
bucket; the unique constraint over (identity_key, window_key, slot) makes
check-and-insert atomic across concurrent recorders. Failed and released rows
carry a NULL slot, which the constraint ignores.

Dependencies: sqlalchemy
System role: Single source of truth for usage quotas
"""

from typing import Any

from sqlalchemy import JSON, Boolean, Enum, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from flowchart_ai.boundary.db.base import Base, CreatedAtMixin, UUIDMixin
from flowchart_ai.models.usage import IdentityClass, LedgerStatus


class UsageLedgerModel(Base, UUIDMixin, CreatedAtMixin):
    """
    One usage event.

    Attributes:
        identity_key: Hashed anonymous fingerprint or account id
        identity_class: Class at recording time
        usage_type: flowchart_generation or canvas_analysis
        success: Whether the turn succeeded (only successes count)
        window_key: "ever" or "YYYY-MM"
        slot: Claimed quota slot, NULL for failures
        model: Model identifier, if reported
        tokens_used: Token count, if reported
        error_message: Failure detail
        status: Reservation lifecycle state (LedgerStatus)
        pending_tool_call_ids: Host tool calls a suspended turn waits on
        resume_count: Resumes consumed by this turn
        details: Free-form metadata (column "metadata")
    """

    __tablename__ = "usage_ledger"
    __table_args__ = (
        UniqueConstraint("identity_key", "window_key", "slot", name="uq_usage_ledger_slot"),
        Index("ix_usage_ledger_identity_created", "identity_key", "created_at"),
    )

    identity_key: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    identity_class: Mapped[IdentityClass] = mapped_column(
        Enum(IdentityClass, native_enum=False, length=32, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    usage_type: Mapped[str] = mapped_column(String(64), nullable=False, default="flowchart_generation")
    success: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    window_key: Mapped[str] = mapped_column(String(16), nullable=False)
    slot: Mapped[int | None] = mapped_column(Integer, nullable=True)
    model: Mapped[str | None] = mapped_column(String(128), nullable=True)
    tokens_used: Mapped[int | None] = mapped_column(Integer, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    details: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, nullable=False, default=dict)
    status: Mapped[LedgerStatus] = mapped_column(
        Enum(LedgerStatus, native_enum=False, length=16, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=LedgerStatus.RECORDED,
    )
    pending_tool_call_ids: Mapped[list[str] | None] = mapped_column(JSON(none_as_null=True), nullable=True)
    resume_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return (
            f"<UsageLedgerModel(id={self.id}, identity_class={self.identity_class}, "
            f"window_key={self.window_key}, slot={self.slot}, status={self.status}, success={self.success})>"
        )
