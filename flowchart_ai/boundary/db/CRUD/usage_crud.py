"""
Usage ledger CRUD operations.

Counting and slot queries over the usage ledger, reservation state
transitions, and the retention purge for anonymous rows.

Dependencies: sqlalchemy, flowchart_ai.boundary.db.models.usage_model
System role: Usage ledger persistence operations
"""

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from flowchart_ai.boundary.db.CRUD.base_crud import BaseCRUD
from flowchart_ai.boundary.db.models.usage_model import UsageLedgerModel
from flowchart_ai.models.usage import IdentityClass, LedgerStatus


class UsageLedgerCRUD(BaseCRUD[UsageLedgerModel]):
    """
    CRUD operations for UsageLedgerModel.

    Extends BaseCRUD with window counting, slot lookup, reservation transitions
    and retention queries.
    """

    def __init__(self) -> None:
        super().__init__(UsageLedgerModel)

    async def count_successes(
        self,
        session: AsyncSession,
        identity_key: str,
        since: datetime | None = None,
    ) -> int:
        """
        Count successful entries for an identity.

        Args:
            session: Async database session
            identity_key: Ledger identity key
            since: Inclusive lower bound on created_at (None for all time)

        Returns:
            int: Number of successful rows
        """
        stmt = select(func.count(UsageLedgerModel.id)).where(
            UsageLedgerModel.identity_key == identity_key,
            UsageLedgerModel.success.is_(True),
        )
        if since is not None:
            stmt = stmt.where(UsageLedgerModel.created_at >= since)
        result = await session.execute(stmt)
        return result.scalar_one()

    async def taken_slots(
        self,
        session: AsyncSession,
        identity_key: str,
        window_key: str,
    ) -> set[int]:
        """Slots already claimed in an identity's window bucket."""
        stmt = select(UsageLedgerModel.slot).where(
            UsageLedgerModel.identity_key == identity_key,
            UsageLedgerModel.window_key == window_key,
            UsageLedgerModel.slot.is_not(None),
        )
        result = await session.execute(stmt)
        return set(result.scalars().all())

    async def get_by_identity(
        self,
        session: AsyncSession,
        identity_key: str,
        status: LedgerStatus | None = None,
        limit: int | None = None,
    ) -> Sequence[UsageLedgerModel]:
        """
        Entries for an identity, newest first, optionally in one status.

        Loaded rows are refreshed from the database: transition() updates rows
        without synchronizing objects already in the session.
        """
        stmt = (
            select(UsageLedgerModel)
            .where(UsageLedgerModel.identity_key == identity_key)
            .order_by(UsageLedgerModel.created_at.desc())
            .execution_options(populate_existing=True)
        )
        if status is not None:
            stmt = stmt.where(UsageLedgerModel.status == status)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def transition(
        self,
        session: AsyncSession,
        entry_id: UUID,
        from_status: LedgerStatus,
        **values,
    ) -> bool:
        """
        Update a row only while it is still in from_status.

        The status condition makes the update a compare-and-set: of two
        concurrent transitions out of the same state, exactly one matches.

        Args:
            session: Async database session
            entry_id: Ledger row id
            from_status: Status the row must currently have
            **values: Column values to set

        Returns:
            bool: True if the row was updated
        """
        stmt = (
            update(UsageLedgerModel)
            .where(UsageLedgerModel.id == entry_id, UsageLedgerModel.status == from_status)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount == 1

    async def delete_anonymous_before(self, session: AsyncSession, cutoff: datetime) -> int:
        """
        Delete anonymous rows created before cutoff.

        Returns:
            int: Number of rows removed
        """
        stmt = (
            delete(UsageLedgerModel)
            .where(
                UsageLedgerModel.identity_class == IdentityClass.ANONYMOUS,
                UsageLedgerModel.created_at < cutoff,
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount or 0


usage_ledger_crud = UsageLedgerCRUD()
