"""The completion-trigger consumer: every progress write goes through here.

Checks that the content exists and is reachable (no blocked ancestor),
upserts the (user, content) record, and announces new completions to the
points/badges consumers.
"""

import logging
from packages.common.events import bus
from packages.common.metrics import mark_blocked_write, mark_progress_write
from packages.common.tracing import xapi_event
from packages.schemas.content import ProgressSource, ProgressUpdate, UserProgress
from services.progress.hierarchy import TrailTree
from sqlalchemy.ext.asyncio import AsyncSession
from . import repo

log = logging.getLogger(__name__)


class ContentNotFound(LookupError):
    """The content item (or its trail) does not exist."""


class ContentBlocked(PermissionError):
    """The content item or one of its ancestors is blocked."""


async def write_progress(
    session: AsyncSession,
    user_id: str,
    content_id: str,
    update: ProgressUpdate,
    source: ProgressSource,
) -> UserProgress:
    """Apply `update` to the learner's record for `content_id` and commit.

    A completion is announced only after the commit, and only by the write
    that flipped the record.

    Raises:
        ContentNotFound: unknown content.
        ContentBlocked: the content is gated; nothing is written.
    """
    trail_id = await repo.trail_id_for_content(session, content_id)
    trail = await repo.load_trail(session, trail_id) if trail_id else None
    if trail is None:
        raise ContentNotFound(content_id)
    tree = TrailTree(trail)
    if not tree.is_accessible(tree.find_content(content_id)):
        mark_blocked_write()
        log.warning(f"refused progress write user={user_id} content={content_id}: blocked")
        raise ContentBlocked(content_id)

    stored, newly_completed = await repo.upsert_progress(session, user_id, content_id, update)
    # Also commits whatever the caller staged in this session (e.g. a quiz attempt).
    await session.commit()
    mark_progress_write(source)
    if newly_completed:
        xapi_event(user_id, "completed", content_id, source=source)
        bus.content_completed(user_id, content_id, source)
    return stored
