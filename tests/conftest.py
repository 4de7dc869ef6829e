"""Shared fixtures: a throwaway SQLite database per test run."""

import os
import tempfile
from pathlib import Path

# Must be set before backend.config is imported anywhere.
_TEST_DB = Path(tempfile.mkdtemp(prefix="langbridge-")) / "test.db"
os.environ["LANGBRIDGE_DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB}"

from datetime import datetime  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from backend.database import async_session, engine  # noqa: E402
from backend.models import Base  # noqa: E402


@pytest_asyncio.fixture
async def db():
    """Fresh tables and an open session for one test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    async with async_session() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 3, 15, 12, 0, 0)
