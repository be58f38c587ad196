"""Shared test fixtures for thouthy tests."""

import os

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

# Override settings before any thouthy imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ANTHROPIC_API_KEY"] = ""
os.environ["OTLP_ENDPOINT"] = ""

from thouthy.models.thought import Base  # noqa: E402
from thouthy.services.store import ThoughtStore  # noqa: E402


@pytest.fixture
async def engine():
    """Create an in-memory SQLite engine for testing."""
    eng = create_async_engine("sqlite+aiosqlite://", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def session_factory(engine):
    """Create a session factory bound to the test engine."""
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    """Create a database session for testing."""
    async with session_factory() as sess:
        yield sess


@pytest.fixture
def store(session_factory) -> ThoughtStore:
    """A ThoughtStore bound to the in-memory database."""
    return ThoughtStore(session_factory)


@pytest.fixture
async def populated_store(store):
    """A store holding a small, varied corpus."""
    await store.create_thought(
        "I always lose focus after lunch, need a better routine", tags=["health"]
    )
    await store.create_thought("Buy milk", potential="To-Do")
    await store.create_thought(
        "Customers really want simpler onboarding for the product", tags=["business"]
    )
    parked = await store.create_thought("Learn the ukulele someday")
    await store.park(parked.id)
    return store
