"""Repository layer for the Content service.

Stores trails (with modules and content items) and learner progress, and
loads them back as `packages.schemas.content` models.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional, Sequence, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import and_, case, delete, select
from sqlalchemy import update as sql_update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from packages.common.errors import ConfigurationError
from packages.schemas import content as schemas
from services.progress.hierarchy import build_trail
from services.progress.tracking import merge_progress
from . import models


def _aware(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


def _progress(row: models.UserProgress) -> schemas.UserProgress:
    return schemas.UserProgress(
        user_id=row.user_id,
        content_id=row.content_id,
        completed=row.completed,
        percentage=row.percentage,
        last_accessed=_aware(row.last_accessed),
    )


async def _check_ownership(session: AsyncSession, trail: schemas.Trail) -> None:
    module_ids = [m.id for m in trail.modules]
    content_ids = [c.id for m in trail.modules for c in m.content]
    foreign_modules = (await session.execute(
        select(models.Module.id, models.Module.trail_id)
        .where(models.Module.id.in_(module_ids), models.Module.trail_id != trail.id)
    )).all()
    if foreign_modules:
        mid, owner = foreign_modules[0]
        raise ConfigurationError(f"module {mid!r} already belongs to trail {owner!r}")
    foreign_content = (await session.execute(
        select(models.ContentItem.id, models.Module.trail_id)
        .join(models.Module, models.ContentItem.module_id == models.Module.id)
        .where(models.ContentItem.id.in_(content_ids), models.Module.trail_id != trail.id)
    )).all()
    if foreign_content:
        cid, owner = foreign_content[0]
        raise ConfigurationError(f"content {cid!r} already belongs to trail {owner!r}")


async def save_trail(session: AsyncSession, trail: schemas.Trail) -> None:
    """Insert or update a trail with its modules and content items.

    Modules and content items no longer present in `trail` are removed;
    progress on surviving content is untouched.

    Raises:
        ConfigurationError: a module or content id already belongs to another
            trail; nothing is written.
    """
    await _check_ownership(session, trail)
    await session.merge(models.Trail(
        id=trail.id, title=trail.title, description=trail.description, level=trail.level, blocked=trail.blocked,
    ))
    content_ids = []
    for m in trail.modules:
        await session.merge(models.Module(
            id=m.id, trail_id=trail.id, title=m.title, description=m.description, order=m.order, blocked=m.blocked,
        ))
        for c in m.content:
            content_ids.append(c.id)
            await session.merge(models.ContentItem(
                id=c.id, module_id=m.id, title=c.title, type=c.type, order=c.order, url=c.url,
                duration=c.duration, description=c.description, blocked=c.blocked,
            ))
    await session.flush()
    trail_modules = select(models.Module.id).where(models.Module.trail_id == trail.id)
    await session.execute(
        delete(models.ContentItem)
        .where(models.ContentItem.module_id.in_(trail_modules), models.ContentItem.id.not_in(content_ids))
        .execution_options(synchronize_session=False)
    )
    await session.execute(
        delete(models.Module)
        .where(models.Module.trail_id == trail.id, models.Module.id.not_in([m.id for m in trail.modules]))
        .execution_options(synchronize_session=False)
    )
    await session.commit()


async def load_trail(session: AsyncSession, trail_id: str) -> Optional[schemas.Trail]:
    """Load a trail and its hierarchy; None if it doesn't exist.

    Raises:
        ConfigurationError: the stored rows do not form a valid hierarchy.
    """
    res = await session.execute(select(models.Trail).where(models.Trail.id == trail_id))
    t = res.scalar_one_or_none()
    if t is None:
        return None
    mods = list((await session.execute(select(models.Module).where(models.Module.trail_id == trail_id))).scalars())
    items = list((await session.execute(
        select(models.ContentItem).where(models.ContentItem.module_id.in_([m.id for m in mods]))
    )).scalars())
    return build_trail(
        {"id": t.id, "title": t.title, "description": t.description, "level": t.level, "blocked": t.blocked},
        [{"id": m.id, "trail_id": m.trail_id, "title": m.title, "description": m.description,
          "order": m.order, "blocked": m.blocked} for m in mods],
        [{"id": c.id, "module_id": c.module_id, "title": c.title, "type": c.type, "order": c.order,
          "url": c.url, "duration": c.duration, "description": c.description, "blocked": c.blocked} for c in items],
    )


async def trail_id_for_content(session: AsyncSession, content_id: str) -> Optional[str]:
    """Return the id of the trail owning `content_id`, if the content exists."""
    res = await session.execute(
        select(models.Module.trail_id)
        .join(models.ContentItem, models.ContentItem.module_id == models.Module.id)
        .where(models.ContentItem.id == content_id)
    )
    return res.scalar_one_or_none()


async def get_progress(session: AsyncSession, user_id: str, content_id: str) -> Optional[schemas.UserProgress]:
    """Fetch the progress record for one (user, content) pair."""
    res = await session.execute(
        select(models.UserProgress)
        .where(models.UserProgress.user_id == user_id, models.UserProgress.content_id == content_id)
        .execution_options(populate_existing=True)
    )
    row = res.scalar_one_or_none()
    return _progress(row) if row else None


async def list_progress(
    session: AsyncSession,
    content_ids: Sequence[str],
    user_ids: Optional[Sequence[str]] = None,
) -> list[schemas.UserProgress]:
    """List progress records for the given content, optionally restricted to some users."""
    q = select(models.UserProgress).where(models.UserProgress.content_id.in_(list(content_ids)))
    if user_ids is not None:
        q = q.where(models.UserProgress.user_id.in_(list(user_ids)))
    res = await session.execute(q)
    return [_progress(r) for r in res.scalars()]


async def upsert_progress(
    session: AsyncSession,
    user_id: str,
    content_id: str,
    update: schemas.ProgressUpdate,
    now: Optional[datetime] = None,
) -> Tuple[schemas.UserProgress, bool]:
    """Create or update the single record for (user_id, content_id).

    Two statements on the natural key, left uncommitted for the caller:
    an INSERT ... ON CONFLICT DO UPDATE that never touches `completed` and
    never lowers a completed record's percentage, then, for completing
    writes, `UPDATE ... SET completed WHERE NOT completed`. Only the writer
    whose UPDATE flips the row sees `newly_completed`, however stale its
    earlier read was.

    Returns:
        The stored record and whether this write newly completed it.
    """
    now = now or datetime.now(timezone.utc)
    existing = await get_progress(session, user_id, content_id)
    merged = merge_progress(existing, user_id, content_id, update, now)

    table = models.UserProgress.__table__
    insert = pg_insert if session.bind.dialect.name == "postgresql" else sqlite_insert
    stmt = insert(table).values(
        id=str(uuid.uuid4()),
        user_id=user_id,
        content_id=content_id,
        completed=False,
        percentage=merged.percentage,
        last_accessed=merged.last_accessed,
    )
    keep_higher = and_(table.c.completed, table.c.percentage > stmt.excluded.percentage)
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.user_id, table.c.content_id],
        set_={
            "percentage": case((keep_higher, table.c.percentage), else_=stmt.excluded.percentage),
            "last_accessed": stmt.excluded.last_accessed,
        },
    )
    await session.execute(stmt)

    newly_completed = False
    if update.completed:
        res = await session.execute(
            sql_update(models.UserProgress)
            .where(
                models.UserProgress.user_id == user_id,
                models.UserProgress.content_id == content_id,
                models.UserProgress.completed.is_(False),
            )
            .values(completed=True)
            .execution_options(synchronize_session=False)
        )
        newly_completed = res.rowcount == 1

    stored = await get_progress(session, user_id, content_id)
    return stored, newly_completed
