"""
Database models package.

Exports:
  - UsageLedgerModel: Append-only usage ledger
"""

from flowchart_ai.boundary.db.models.usage_model import UsageLedgerModel

__all__ = ["UsageLedgerModel"]
