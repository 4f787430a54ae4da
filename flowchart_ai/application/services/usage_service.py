"""
Usage service.

Database-backed admission: evaluates quota from the usage ledger, records
usage with an atomic slot-claiming insert, and moves turn reservations
through their lifecycle.

Dependencies: sqlalchemy, flowchart_ai.core.admission, flowchart_ai.boundary.db
System role: Usage/quota use case orchestration
"""

import logging
import uuid
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from flowchart_ai.boundary.db.CRUD.usage_crud import usage_ledger_crud
from flowchart_ai.configs.quota import QuotaSettings
from flowchart_ai.core.admission import (
    AdmissionController,
    day_start,
    month_start,
    window_key,
    window_start,
)
from flowchart_ai.core.admission.policy import as_utc
from flowchart_ai.models.usage import (
    AdmissionDecision,
    Identity,
    LedgerStatus,
    RecordOutcome,
    UsageStats,
    UsageType,
)
from flowchart_ai.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)


class UsageService:
    """Usage ledger orchestrator."""

    def __init__(
        self,
        db: AsyncSession,
        settings: QuotaSettings,
        controller: AdmissionController | None = None,
    ) -> None:
        """
        Initialize usage service.

        Args:
            db: Async SQLAlchemy session
            settings: Quota settings
            controller: Admission controller (built from settings if omitted)
        """
        self.db = db
        self.settings = settings
        self.controller = controller or AdmissionController(settings)

    async def get_decision(self, identity: Identity, now: datetime | None = None) -> AdmissionDecision:
        """
        Evaluate an identity against its ledger rows in the current window.

        Returns:
            AdmissionDecision: Current decision
        """
        now = as_utc(now or datetime.now(timezone.utc))
        since = window_start(self.controller.policy_for(identity), now)
        used = await usage_ledger_crud.count_successes(self.db, identity.key, since=since)
        return self.controller.decide(identity, used, now)

    async def get_stats(self, identity: Identity, now: datetime | None = None) -> UsageStats:
        """Successful usage today, this month (UTC) and in total."""
        now = as_utc(now or datetime.now(timezone.utc))
        return UsageStats(
            today=await usage_ledger_crud.count_successes(self.db, identity.key, since=day_start(now)),
            this_month=await usage_ledger_crud.count_successes(self.db, identity.key, since=month_start(now)),
            total=await usage_ledger_crud.count_successes(self.db, identity.key),
        )

    async def record_usage(
        self,
        identity: Identity,
        usage_type: UsageType = UsageType.FLOWCHART_GENERATION,
        success: bool = True,
        metadata: dict[str, Any] | None = None,
        model: str | None = None,
        tokens_used: int | None = None,
        error_message: str | None = None,
        now: datetime | None = None,
        status: LedgerStatus = LedgerStatus.RECORDED,
    ) -> RecordOutcome:
        """
        Append a usage event.

        Successful events claim the lowest free slot of the identity's window;
        the unique constraint rejects a concurrent claim of the same slot, in
        which case the whole check-and-insert is retried. Failed events are
        recorded without a slot and never consume quota.

        A successful flowchart report first confirms a finished turn of the
        identity, whose slot was claimed at admission, instead of claiming a
        second one.

        Args:
            identity: Caller identity
            usage_type: Kind of AI usage
            success: Whether the turn succeeded
            metadata: Free-form details stored with the row
            model: Model identifier
            tokens_used: Token count
            error_message: Failure detail
            now: Recording instant (defaults to current UTC time)
            status: Initial row status (RESERVED for turn admission)

        Returns:
            RecordOutcome: recorded=False when no quota slot is left
        """
        now = as_utc(now or datetime.now(timezone.utc))
        policy = self.controller.policy_for(identity)
        bucket = window_key(policy, now)

        if success and status == LedgerStatus.RECORDED and usage_type == UsageType.FLOWCHART_GENERATION:
            confirmed = await self._confirm_finished_turn(identity, metadata, tokens_used, now)
            if confirmed is not None:
                return confirmed

        for attempt in range(1, self.settings.max_record_attempts + 1):
            decision = await self.get_decision(identity, now)
            slot = None
            if success:
                if not decision.allowed:
                    logger.info(
                        f"{__name__}:record_usage - Quota exhausted",
                        extra={"identity_class": identity.identity_class.value, "used": decision.used},
                    )
                    return RecordOutcome(recorded=False, decision=decision)
                taken = await usage_ledger_crud.taken_slots(self.db, identity.key, bucket)
                slot = next((s for s in range(1, policy.limit + 1) if s not in taken), None)
                if slot is None:
                    return RecordOutcome(
                        recorded=False,
                        decision=self.controller.decide(identity, len(taken), now),
                    )

            try:
                entry = await usage_ledger_crud.create(
                    self.db,
                    identity_key=identity.key,
                    identity_class=identity.identity_class,
                    usage_type=usage_type.value,
                    success=success,
                    window_key=bucket,
                    slot=slot,
                    model=model,
                    tokens_used=tokens_used,
                    error_message=error_message,
                    details=metadata or {},
                    status=status if success else LedgerStatus.RECORDED,
                    created_at=now,
                )
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                logger.warning(
                    f"{__name__}:record_usage - Slot conflict, retrying",
                    extra={"attempt": attempt, "slot": slot, "window_key": bucket},
                )
                continue

            logger.info(
                f"{__name__}:record_usage - Recorded usage",
                extra={
                    "identity_class": identity.identity_class.value,
                    "usage_type": usage_type.value,
                    "success": success,
                    "slot": slot,
                    "status": entry.status.value,
                },
            )
            if identity.is_anonymous:
                await self._purge_after_insert(now)

            used_after = decision.used + 1 if success else decision.used
            return RecordOutcome(
                recorded=True,
                decision=self.controller.decide(identity, used_after, now),
                entry_id=entry.id,
            )

        logger.warning(
            f"{__name__}:record_usage - Gave up after {self.settings.max_record_attempts} attempts",
            extra={"identity_class": identity.identity_class.value},
        )
        return RecordOutcome(recorded=False, decision=await self.get_decision(identity, now))

    async def reserve_turn(
        self,
        identity: Identity,
        model: str | None = None,
        now: datetime | None = None,
    ) -> RecordOutcome:
        """
        Claim a quota slot for a turn before any inference call.

        Evaluation and claim are one slot-claiming insert, so two concurrent
        submissions cannot both take the last slot.

        Returns:
            RecordOutcome: recorded=False when the identity is out of quota
        """
        return await self.record_usage(
            identity,
            UsageType.FLOWCHART_GENERATION,
            success=True,
            model=model,
            now=now,
            status=LedgerStatus.RESERVED,
        )

    async def resume_turn(self, identity: Identity, tool_call_ids: Iterable[str]) -> uuid.UUID | None:
        """
        Reopen the suspended turn waiting on exactly these tool calls.

        Returns:
            uuid.UUID | None: The reservation id, or None when no suspended turn
            of this identity matches (or it used up its resumes)
        """
        answered = set(tool_call_ids)
        suspended = await usage_ledger_crud.get_by_identity(self.db, identity.key, status=LedgerStatus.SUSPENDED)
        for entry in suspended:
            if set(entry.pending_tool_call_ids or ()) != answered:
                continue
            if entry.resume_count >= self.settings.max_resumes_per_turn:
                logger.info(
                    f"{__name__}:resume_turn - Resume limit reached",
                    extra={"identity_class": identity.identity_class.value, "resumes": entry.resume_count},
                )
                return None
            reopened = await usage_ledger_crud.transition(
                self.db,
                entry.id,
                LedgerStatus.SUSPENDED,
                status=LedgerStatus.RESERVED,
                pending_tool_call_ids=None,
                resume_count=entry.resume_count + 1,
            )
            await self.db.commit()
            if reopened:
                return entry.id
        return None

    async def suspend_turn(self, reservation_id: uuid.UUID, pending_tool_call_ids: list[str]) -> bool:
        """Park a reserved turn until the host answers its tool calls."""
        return await self._close_reservation(
            reservation_id,
            status=LedgerStatus.SUSPENDED,
            pending_tool_call_ids=list(pending_tool_call_ids),
        )

    async def finish_turn(self, identity: Identity, reservation_id: uuid.UUID) -> bool:
        """
        Mark a reserved turn as finished.

        Anonymous turns are recorded outright; authenticated turns wait for the
        caller's record report.
        """
        status = LedgerStatus.RECORDED if identity.is_anonymous else LedgerStatus.FINISHED
        return await self._close_reservation(reservation_id, status=status)

    async def release_turn(self, reservation_id: uuid.UUID, reason: str) -> bool:
        """Give a failed turn's slot back; the row stays as a failure."""
        return await self._close_reservation(
            reservation_id,
            status=LedgerStatus.RELEASED,
            success=False,
            slot=None,
            error_message=reason,
        )

    async def _close_reservation(self, reservation_id: uuid.UUID, **values) -> bool:
        moved = await usage_ledger_crud.transition(self.db, reservation_id, LedgerStatus.RESERVED, **values)
        await self.db.commit()
        if not moved:
            logger.warning(
                f"{__name__}:_close_reservation - Reservation not in flight",
                extra={"reservation_id": str(reservation_id), "status": values["status"].value},
            )
        return moved

    async def _confirm_finished_turn(
        self,
        identity: Identity,
        metadata: dict[str, Any] | None,
        tokens_used: int | None,
        now: datetime,
    ) -> RecordOutcome | None:
        finished = await usage_ledger_crud.get_by_identity(self.db, identity.key, status=LedgerStatus.FINISHED)
        for entry in finished:
            values: dict[str, Any] = {"status": LedgerStatus.RECORDED, "tokens_used": tokens_used}
            if metadata:
                values["details"] = metadata
            confirmed = await usage_ledger_crud.transition(self.db, entry.id, LedgerStatus.FINISHED, **values)
            await self.db.commit()
            if confirmed:
                logger.info(
                    f"{__name__}:record_usage - Confirmed finished turn",
                    extra={"identity_class": identity.identity_class.value},
                )
                return RecordOutcome(
                    recorded=True,
                    decision=await self.get_decision(identity, now),
                    entry_id=entry.id,
                )
        return None

    async def _purge_after_insert(self, now: datetime) -> None:
        # The insert is already committed; a failed purge is retried on the next insert.
        try:
            await self.purge_expired_guest_usage(now)
        except SQLAlchemyError as e:
            await self.db.rollback()
            log_exception_with_context(logger, f"{__name__}:_purge_after_insert - Guest purge failed", e)

    async def purge_expired_guest_usage(self, now: datetime | None = None) -> int:
        """
        Delete anonymous ledger rows older than the retention horizon.

        Returns:
            int: Rows removed
        """
        now = as_utc(now or datetime.now(timezone.utc))
        cutoff = now - timedelta(days=self.settings.guest_retention_days)
        deleted = await usage_ledger_crud.delete_anonymous_before(self.db, cutoff)
        await self.db.commit()
        if deleted:
            logger.info(f"{__name__}:purge_expired_guest_usage - Purged {deleted} rows", extra={"cutoff": cutoff.isoformat()})
        return deleted
