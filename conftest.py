"""Shared pytest fixtures: a throwaway SQLite database for the test run."""

import os
import tempfile

# Must run before any trailhub module reads (and caches) its settings.
_DB_DIR = tempfile.mkdtemp(prefix="trailhub-test-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"
os.environ.pop("KAFKA_BOOTSTRAP", None)
os.environ.pop("QUIZ_MAX_ATTEMPTS", None)

import pytest_asyncio  # noqa: E402
from packages.common.db import Session, drop_db, init_db  # noqa: E402


@pytest_asyncio.fixture
async def session():
    """A session on a freshly created schema, dropped after the test."""
    await init_db()
    async with Session() as s:
        yield s
    await drop_db()
