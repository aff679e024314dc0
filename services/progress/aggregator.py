"""Derived progress for modules, trails and classes.

All functions are pure: they take already-loaded definitions and progress
records and return unrounded percentages. A missing record counts as not
completed and an empty container counts as 0 %, never as an error.
"""

from typing import Callable, Dict, Iterable, List, Optional, Sequence

from packages.schemas.content import (
    ClassProgress, ContentItem, ContentStats, Module, ProgressUpdate, StudentProgress, Trail, UserProgress,
)
from .hierarchy import Node, TrailTree
from .tracking import merge_progress


def _fold(records: Iterable[UserProgress], key: Callable[[UserProgress], str]) -> Dict[str, UserProgress]:
    # Oldest first, so later writes win but a completion is never lost.
    out: Dict[str, UserProgress] = {}
    for r in sorted(records, key=lambda r: r.last_accessed):
        prev = out.get(key(r))
        if prev is None:
            out[key(r)] = r
        else:
            update = ProgressUpdate(completed=r.completed, percentage=r.percentage)
            out[key(r)] = merge_progress(prev, r.user_id, r.content_id, update, r.last_accessed)
    return out


def index_progress(records: Iterable[UserProgress], user_id: Optional[str] = None) -> Dict[str, UserProgress]:
    """Index records by content id, optionally keeping only `user_id`'s.

    The store keeps one record per (user, content); duplicates that slip
    through are folded with the never-downgrade rule.
    """
    return _fold((r for r in records if user_id is None or r.user_id == user_id), key=lambda r: r.content_id)


def _percent(done: int, total: int) -> float:
    return done / total * 100.0 if total > 0 else 0.0


def _completed(items: Sequence[ContentItem], progress: Dict[str, UserProgress]) -> int:
    return sum(1 for c in items if c.id in progress and progress[c.id].completed)


def module_progress(module: Module, records: Iterable[UserProgress]) -> float:
    """Percentage of the module's content items the learner has completed.

    `records` must belong to a single learner.
    """
    progress = index_progress(records)
    return _percent(_completed(module.content, progress), len(module.content))


def trail_progress(trail: Trail, records: Iterable[UserProgress]) -> float:
    """Percentage of all content items across the trail's modules that are completed.

    Weighted by content item, not averaged per module. `records` must belong
    to a single learner.
    """
    progress = index_progress(records)
    items = [c for m in trail.modules for c in m.content]
    return _percent(_completed(items, progress), len(items))


def is_accessible(node: Node, tree: TrailTree) -> bool:
    """True iff `node` and all its ancestors in `tree` are unblocked."""
    return tree.is_accessible(node)


def class_progress(trails: Sequence[Trail], student_ids: Sequence[str], records: Iterable[UserProgress]) -> ClassProgress:
    """Overall completion per student across every trail a class follows.

    Returns the per-student percentages, their mean, and how many students
    have completed everything (100 %).
    """
    records = list(records)
    items = [c for t in trails for m in t.modules for c in m.content]
    students: List[StudentProgress] = []
    for sid in student_ids:
        progress = index_progress(records, user_id=sid)
        students.append(StudentProgress(user_id=sid, percentage=_percent(_completed(items, progress), len(items))))
    average = sum(s.percentage for s in students) / len(students) if students else 0.0
    return ClassProgress(
        average=average,
        completed_students=sum(1 for s in students if s.percentage >= 100),
        students=students,
    )


def content_stats(content_id: str, student_ids: Sequence[str], records: Iterable[UserProgress]) -> ContentStats:
    """Started/completed counts and mean watch percentage for one content item.

    A student has started when their percentage is above zero; the average is
    taken over starters only.
    """
    wanted = set(student_ids)
    per_user = _fold((r for r in records if r.content_id == content_id and r.user_id in wanted),
                     key=lambda r: r.user_id)
    started = [p for p in per_user.values() if p.percentage > 0]
    return ContentStats(
        content_id=content_id,
        total_students=len(wanted),
        students_started=len(started),
        students_completed=sum(1 for p in per_user.values() if p.completed),
        average_progress=sum(p.percentage for p in started) / len(started) if started else 0.0,
    )
