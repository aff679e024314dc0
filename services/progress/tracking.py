"""Turning player ticks and completion triggers into progress writes.

`merge_progress` is the pure form of the (user, content) upsert: the latest
write wins, except that a completed record is never un-completed and its
percentage never drops.
"""

import math
from datetime import datetime
from typing import Optional

from packages.schemas.content import ProgressUpdate, UserProgress, VideoTick


def video_percentage(current_time: float, duration: float) -> Optional[int]:
    """Whole watched percentage, halves rounded up, capped at 100; None when `duration` is not positive."""
    if duration <= 0:
        return None
    return min(100, math.floor(current_time * 100 / duration + 0.5))


def video_update(tick: VideoTick, threshold: int = 80) -> Optional[ProgressUpdate]:
    """Build the progress write for a player tick.

    A tick at or beyond `threshold` percent, or the player's end event,
    completes the video. Ticks without a usable duration produce nothing.
    """
    if tick.ended:
        return ProgressUpdate(completed=True, percentage=100)
    pct = video_percentage(tick.current_time, tick.duration)
    if pct is None:
        return None
    return ProgressUpdate(completed=pct >= threshold, percentage=pct)


def should_save(current_time: float, last_saved: Optional[float], interval: float, completed: bool) -> bool:
    """Persist a tick every `interval` seconds of playback, and always on completion."""
    if completed or last_saved is None:
        return True
    return abs(current_time - last_saved) >= interval


def merge_progress(
    existing: Optional[UserProgress],
    user_id: str,
    content_id: str,
    update: ProgressUpdate,
    now: datetime,
) -> UserProgress:
    """Apply `update` on top of the stored record for (user_id, content_id)."""
    was_completed = existing is not None and existing.completed
    percentage = update.percentage
    if percentage is None:
        percentage = existing.percentage if existing is not None else 0
    elif was_completed:
        percentage = max(percentage, existing.percentage)
    return UserProgress(
        user_id=user_id,
        content_id=content_id,
        completed=was_completed or bool(update.completed),
        percentage=percentage,
        last_accessed=now,
    )
