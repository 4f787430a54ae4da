"""
Shared test fixtures and configuration for entire test suite.

Provides: SQLite async database, quota settings, sample identities and transcripts
Dependencies: pytest, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import pytest

from flowchart_ai.configs.quota import QuotaSettings
from flowchart_ai.models.conversation import Message, MessageRole, Transcript
from flowchart_ai.models.usage import Identity, IdentityClass


@pytest.fixture
async def test_engine():
    """
    In-memory SQLite async engine with all tables created.

    Yields:
        AsyncEngine: Engine shared by every session of one test
    """
    from sqlalchemy.ext.asyncio import create_async_engine
    from sqlalchemy.pool import StaticPool

    from flowchart_ai.boundary.db.base import Base
    from flowchart_ai.boundary.db.models.usage_model import UsageLedgerModel  # noqa: F401

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def test_session_factory(test_engine):
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def test_async_db(test_session_factory):
    """
    Session on the in-memory database.

    Yields:
        AsyncSession: Test database session
    """
    async with test_session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def quota_settings() -> QuotaSettings:
    return QuotaSettings(
        anonymous_limit=1,
        free_limit=3,
        subscriber_limit=10,
        guest_retention_days=30,
        fingerprint_secret="test-secret",
    )


@pytest.fixture
def anonymous_identity() -> Identity:
    return Identity(identity_class=IdentityClass.ANONYMOUS, key="f" * 64)


@pytest.fixture
def free_identity() -> Identity:
    return Identity(identity_class=IdentityClass.AUTHENTICATED_FREE, key="user-1", user_id="user-1")


@pytest.fixture
def subscriber_identity() -> Identity:
    return Identity(
        identity_class=IdentityClass.AUTHENTICATED_SUBSCRIBER, key="user-2", user_id="user-2"
    )


@pytest.fixture
def user_transcript() -> Transcript:
    return Transcript(messages=(Message(role=MessageRole.USER, content="Draw a login flow"),))
