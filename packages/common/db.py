"""Async SQLAlchemy plumbing shared by the Content and Assessment services.

Both services map their tables on the same declarative `Base`, so a single
`init_db()` creates the whole schema.
"""

from typing import AsyncIterator
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from .config import get_settings

Base = declarative_base()

s = get_settings()
# aiosqlite connections are bound to the loop that opened them; don't pool them.
_engine_kwargs = {"poolclass": NullPool} if s.DATABASE_URL.startswith("sqlite") else {}
engine = create_async_engine(s.DATABASE_URL, echo=False, **_engine_kwargs)
Session = async_sessionmaker(engine, expire_on_commit=False)


async def init_db() -> None:
    """Create database schema if it doesn't exist."""
    # Import for side effects: registers every table on Base.metadata.
    from services.content import models as _content_models  # noqa: F401
    from services.assessment import models as _assessment_models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db() -> None:
    """Drop every table known to `Base` (test helper)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency yielding a session bound to the shared engine."""
    async with Session() as session:
        yield session
