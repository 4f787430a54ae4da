"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, UUIDMixin, CreatedAtMixin: Model building blocks
  - get_async_engine(), get_async_session_factory(), get_async_db(): Async connection management
  - UsageLedgerModel: Append-only usage ledger
  - usage_ledger_crud: CRUD singleton

Dependencies: sqlalchemy, flowchart_ai.configs
System role: Database adapter providing persistent storage for the usage ledger.
"""

from flowchart_ai.boundary.db.base import Base, CreatedAtMixin, UUIDMixin
from flowchart_ai.boundary.db.connection import (
    get_async_db,
    get_async_engine,
    get_async_session_factory,
)
from flowchart_ai.boundary.db.CRUD import UsageLedgerCRUD, usage_ledger_crud
from flowchart_ai.boundary.db.models import UsageLedgerModel

__all__ = [
    "Base",
    "UUIDMixin",
    "CreatedAtMixin",
    "get_async_engine",
    "get_async_session_factory",
    "get_async_db",
    "UsageLedgerModel",
    "UsageLedgerCRUD",
    "usage_ledger_crud",
]
