# services/content/routes.py
"""HTTP routes of the Content service: trails, learner progress, and reports."""

from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from packages.common.config import get_settings
from packages.common.db import get_session
from packages.schemas.content import (
    ModuleProgress, ProgressWrite, Trail, TrailProgress, TrailReport, UserProgress, VideoTick,
)
from services.progress import aggregator
from services.progress.hierarchy import TrailTree
from services.progress.tracking import should_save, video_update
from . import repo
from .writer import ContentBlocked, ContentNotFound, write_progress

router = APIRouter()


@router.get("/ping", tags=["content"])
def ping():
    return {"ok": True}


async def _trail_or_404(session: AsyncSession, trail_id: str) -> Trail:
    trail = await repo.load_trail(session, trail_id)
    if trail is None:
        raise HTTPException(404, "trail not found")
    return trail


@router.post("/trails", response_model=Trail, status_code=201, tags=["content"])
async def put_trail(trail: Trail, session: AsyncSession = Depends(get_session)) -> Trail:
    """Create or replace a trail with its modules and content."""
    TrailTree(trail)  # rejects content shared between modules
    await repo.save_trail(session, trail)
    return await _trail_or_404(session, trail.id)


@router.get("/trails/{trail_id}", response_model=Trail, tags=["content"])
async def get_trail(trail_id: str, session: AsyncSession = Depends(get_session)) -> Trail:
    return await _trail_or_404(session, trail_id)


@router.get("/trails/{trail_id}/progress", response_model=TrailProgress, tags=["progress"])
async def get_trail_progress(trail_id: str, user_id: str, session: AsyncSession = Depends(get_session)) -> TrailProgress:
    """Completion of one learner across the trail and each of its modules."""
    trail = await _trail_or_404(session, trail_id)
    tree = TrailTree(trail)
    records = await repo.list_progress(session, [c.id for c in tree.contents()], [user_id])
    return TrailProgress(
        trail_id=trail.id,
        user_id=user_id,
        percentage=aggregator.trail_progress(trail, records),
        accessible=tree.is_accessible(trail),
        modules=[
            ModuleProgress(
                module_id=m.id,
                percentage=aggregator.module_progress(m, records),
                accessible=tree.is_accessible(m),
            )
            for m in trail.modules
        ],
    )


@router.get("/trails/{trail_id}/report", response_model=TrailReport, tags=["progress"])
async def get_trail_report(
    trail_id: str,
    user_ids: List[str] = Query(default=[]),
    session: AsyncSession = Depends(get_session),
) -> TrailReport:
    """Class-level completion and per-content statistics for a group of learners."""
    trail = await _trail_or_404(session, trail_id)
    content_ids = [c.id for c in TrailTree(trail).contents()]
    records = await repo.list_progress(session, content_ids, user_ids)
    return TrailReport(
        trail_id=trail.id,
        class_progress=aggregator.class_progress([trail], user_ids, records),
        contents=[aggregator.content_stats(cid, user_ids, records) for cid in content_ids],
    )


async def _write(session: AsyncSession, user_id: str, content_id: str, update, source) -> UserProgress:
    try:
        return await write_progress(session, user_id, content_id, update, source)
    except ContentNotFound:
        raise HTTPException(404, "content not found")
    except ContentBlocked:
        raise HTTPException(403, "content is blocked")


@router.post("/progress", response_model=UserProgress, tags=["progress"])
async def post_progress(payload: ProgressWrite, session: AsyncSession = Depends(get_session)) -> UserProgress:
    """Record a manual progress write, e.g. "mark as completed" or opening a PDF."""
    return await _write(session, payload.user_id, payload.content_id, payload, "manual")


@router.post("/progress/video", response_model=UserProgress | None, tags=["progress"])
async def post_video_tick(tick: VideoTick, session: AsyncSession = Depends(get_session)) -> UserProgress | None:
    """Record a video player tick.

    Returns the stored record, or null when the tick was skipped (no usable
    duration, or less than the save interval since the last saved tick).
    """
    s = get_settings()
    update = video_update(tick, s.VIDEO_COMPLETION_THRESHOLD)
    if update is None:
        return None
    if not should_save(tick.current_time, tick.last_saved_time, s.VIDEO_PROGRESS_INTERVAL_SEC, bool(update.completed)):
        return None
    return await _write(session, tick.user_id, tick.content_id, update, "video")
