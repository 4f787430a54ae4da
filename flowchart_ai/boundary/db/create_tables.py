"""
Database table creation script.

Creates all tables defined in ORM models using SQLAlchemy metadata.

Dependencies: sqlalchemy, flowchart_ai.configs
System role: Database schema initialization

Usage:
    python -m flowchart_ai.boundary.db.create_tables
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from flowchart_ai.boundary.db.base import Base
from flowchart_ai.boundary.db.connection import get_async_engine

# Import all models to register them with Base.metadata
from flowchart_ai.boundary.db.models.usage_model import UsageLedgerModel  # noqa: F401

logger = logging.getLogger(__name__)


async def create_all_tables(engine: AsyncEngine | None = None) -> None:
    """
    Create all database tables from registered ORM models.

    Idempotent: issues CREATE TABLE IF NOT EXISTS for each model, so safe
    to run multiple times.

    Args:
        engine: Target engine (defaults to the configured one)
    """
    engine = engine or get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"{__name__}:create_all_tables - Tables ready", extra={"tables": sorted(Base.metadata.tables)})


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(create_all_tables())
