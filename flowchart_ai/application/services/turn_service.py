"""
Turn service.

Admits turn submissions by reserving a quota slot, streams orchestrator events
in the server-sent-event wire format, and settles the reservation by how the
turn ends: finished, suspended for host tools, or failed.

Dependencies: sqlalchemy, flowchart_ai.core.orchestration, flowchart_ai.application.services
System role: Chat turn use case orchestration
"""

import logging
import uuid
from collections.abc import AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from flowchart_ai.application.services.usage_service import UsageService
from flowchart_ai.configs.quota import QuotaSettings
from flowchart_ai.core.exceptions import QuotaExceededError
from flowchart_ai.core.orchestration.orchestrator import ConversationOrchestrator
from flowchart_ai.models.chat import FlowchartChatRequest
from flowchart_ai.models.streaming import SSE_DONE, Failed, Finished, Suspended, TurnEvent, iter_sse
from flowchart_ai.models.usage import Admission, Identity
from flowchart_ai.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)

CANCELLED_REASON = "Turn ended before completion"


class TurnService:
    """
    Chat turn orchestration.

    Opens its own database sessions: the streaming body outlives the request
    scope of dependency-injected sessions.
    """

    def __init__(
        self,
        orchestrator: ConversationOrchestrator,
        session_factory: async_sessionmaker[AsyncSession],
        quota_settings: QuotaSettings,
        model_id: str | None = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.session_factory = session_factory
        self.quota_settings = quota_settings
        self.model_id = model_id

    async def admit(self, identity: Identity, request: FlowchartChatRequest) -> Admission:
        """
        Gate a submission before any inference call.

        A new submission claims a quota slot. A resume submission reuses the
        slot of the suspended turn whose pending tool calls it answers; a
        resume the ledger does not know about is gated like a new submission.

        Returns:
            Admission: Decision plus the reservation the turn runs under

        Raises:
            QuotaExceededError: If the identity has no quota left
        """
        transcript = request.to_transcript()
        if transcript.is_resume():
            async with self.session_factory() as db:
                usage = UsageService(db, self.quota_settings)
                reservation_id = await usage.resume_turn(identity, transcript.resumed_tool_call_ids())
                if reservation_id is not None:
                    logger.info(
                        f"{__name__}:admit - Resuming suspended turn",
                        extra={"identity_class": identity.identity_class.value},
                    )
                    return Admission(
                        decision=await usage.get_decision(identity),
                        reservation_id=reservation_id,
                        resumed=True,
                    )
            logger.info(
                f"{__name__}:admit - No suspended turn matches resume, gating as new",
                extra={"identity_class": identity.identity_class.value},
            )

        async with self.session_factory() as db:
            outcome = await UsageService(db, self.quota_settings).reserve_turn(identity, model=self.model_id)

        if not outcome.recorded:
            logger.info(
                f"{__name__}:admit - Denied",
                extra={"identity_class": identity.identity_class.value, "used": outcome.decision.used},
            )
            raise QuotaExceededError(outcome.decision)
        return Admission(decision=outcome.decision, reservation_id=outcome.entry_id)

    async def stream_turn(
        self,
        request: FlowchartChatRequest,
        identity: Identity,
        admission: Admission | None = None,
    ) -> AsyncGenerator[str, None]:
        """
        Stream one turn as SSE lines, terminated by [DONE].

        The reservation is settled before the terminal event is sent. A stream
        closed early by the client releases it.

        Args:
            request: Chat request
            identity: Admitted caller identity
            admission: Result of admit()

        Yields:
            str: `data: <json>\\n\\n` lines
        """
        reservation_id = admission.reservation_id if admission else None
        logger.info(
            f"{__name__}:stream_turn - START",
            extra={"identity_class": identity.identity_class.value, "mode": request.mode.value},
        )
        settled = False
        try:
            async for event in self.orchestrator.run_turn(
                request.to_transcript(),
                identity,
                mode=request.mode,
                canvas_state=request.canvas_state,
            ):
                if event.terminal:
                    settled = True
                    await self._settle(identity, reservation_id, event)
                for line in iter_sse(event):
                    yield line
            yield SSE_DONE
        finally:
            if not settled:
                await self._settle(identity, reservation_id, Failed(reason=CANCELLED_REASON))

    async def _settle(self, identity: Identity, reservation_id: uuid.UUID | None, event: TurnEvent) -> None:
        if reservation_id is None:
            return
        try:
            async with self.session_factory() as db:
                usage = UsageService(db, self.quota_settings)
                if isinstance(event, Finished):
                    await usage.finish_turn(identity, reservation_id)
                elif isinstance(event, Suspended):
                    await usage.suspend_turn(reservation_id, event.pending_tool_call_ids)
                else:
                    await usage.release_turn(reservation_id, event.reason)
        except SQLAlchemyError as e:
            log_exception_with_context(
                logger,
                f"{__name__}:_settle - Failed to settle turn reservation",
                e,
                identity_class=identity.identity_class.value,
                event_type=event.type.value,
            )
