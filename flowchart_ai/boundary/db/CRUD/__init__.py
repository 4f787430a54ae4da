"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from flowchart_ai.boundary.db.CRUD import usage_ledger_crud

    used = await usage_ledger_crud.count_successes(db, identity.key, since=month_start)
"""

from flowchart_ai.boundary.db.CRUD.base_crud import BaseCRUD
from flowchart_ai.boundary.db.CRUD.usage_crud import UsageLedgerCRUD, usage_ledger_crud

__all__ = [
    "BaseCRUD",
    "UsageLedgerCRUD",
    "usage_ledger_crud",
]
