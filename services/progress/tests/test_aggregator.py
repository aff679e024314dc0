"""Tests for module, trail and class progress aggregation."""

from datetime import datetime, timedelta, timezone

import pytest
from packages.schemas.content import ContentItem, Module, Trail, UserProgress
from services.progress.aggregator import (
    class_progress, content_stats, index_progress, is_accessible, module_progress, trail_progress,
)
from services.progress.hierarchy import TrailTree

T0 = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def _item(cid: str, blocked: bool = False, type: str = "video") -> ContentItem:
    return ContentItem(id=cid, title=cid.upper(), type=type, blocked=blocked)


def _done(cid: str, user: str = "u1", completed: bool = True, pct: float = 100, at: datetime = T0) -> UserProgress:
    return UserProgress(user_id=user, content_id=cid, completed=completed, percentage=pct, last_accessed=at)


def _trail(blocked: bool = False) -> Trail:
    return Trail(id="t", title="Trail", blocked=blocked, modules=[
        Module(id="m1", title="Intro", order=1, content=[_item("a"), _item("b"), _item("c")]),
        Module(id="m2", title="Deep dive", order=2, content=[_item("d", type="quiz")]),
        Module(id="m3", title="Coming soon", order=3),
    ])


def test_module_progress_counts_completed_items() -> None:
    module = _trail().modules[0]
    assert module_progress(module, []) == 0
    assert module_progress(module, [_done("a"), _done("b")]) == pytest.approx(200 / 3)
    assert module_progress(module, [_done("a"), _done("b"), _done("c")]) == 100


def test_partial_video_progress_does_not_count() -> None:
    module = _trail().modules[0]
    assert module_progress(module, [_done("a", completed=False, pct=79)]) == 0


def test_empty_module_and_trail_are_zero() -> None:
    assert module_progress(_trail().modules[2], [_done("a")]) == 0
    assert trail_progress(Trail(id="e", title="Empty"), []) == 0
    assert trail_progress(Trail(id="e", title="Empty", modules=[Module(id="x", title="X")]), []) == 0


def test_trail_progress_is_weighted_by_content() -> None:
    trail = _trail()
    assert trail_progress(trail, [_done("d")]) == 25
    assert trail_progress(trail, [_done("a"), _done("b"), _done("c"), _done("d")]) == 100


def test_records_for_unknown_content_are_ignored() -> None:
    assert trail_progress(_trail(), [_done("zzz")]) == 0


def test_completion_survives_a_fresher_incomplete_record() -> None:
    records = [
        _done("a", completed=True, pct=100, at=T0),
        _done("a", completed=False, pct=40, at=T0 + timedelta(minutes=5)),
    ]
    assert index_progress(records)["a"].completed is True
    assert module_progress(_trail().modules[0], records) == pytest.approx(100 / 3)


def test_index_progress_filters_by_user() -> None:
    records = [_done("a", user="u1"), _done("b", user="u2")]
    assert set(index_progress(records, user_id="u2")) == {"b"}


def test_ancestor_block_overrides_descendants() -> None:
    trail = _trail(blocked=True)
    tree = TrailTree(trail)
    content = trail.modules[0].content[0]
    assert is_accessible(content, tree) is False
    assert is_accessible(trail.modules[0], tree) is False
    assert is_accessible(trail, tree) is False


def test_module_and_content_blocks() -> None:
    trail = Trail(id="t", title="T", modules=[
        Module(id="m1", title="Open", content=[_item("a"), _item("b", blocked=True)]),
        Module(id="m2", title="Closed", blocked=True, content=[_item("c")]),
    ])
    tree = TrailTree(trail)
    a, b = trail.modules[0].content
    c = trail.modules[1].content[0]
    assert is_accessible(trail, tree) is True
    assert is_accessible(a, tree) is True
    assert is_accessible(b, tree) is False
    assert is_accessible(c, tree) is False


def test_class_progress_rolls_up_students() -> None:
    trail = _trail()
    records = [_done(c, user="u1") for c in "abcd"] + [_done("a", user="u2"), _done("b", user="u3", completed=False, pct=50)]
    report = class_progress([trail], ["u1", "u2", "u3"], records)
    assert [s.percentage for s in report.students] == [100, 25, 0]
    assert report.average == pytest.approx(125 / 3)
    assert report.completed_students == 1


def test_class_progress_without_students() -> None:
    report = class_progress([_trail()], [], [])
    assert report.average == 0 and report.completed_students == 0 and report.students == []


def test_content_stats_average_over_starters() -> None:
    records = [
        _done("a", user="u1", completed=True, pct=100),
        _done("a", user="u2", completed=False, pct=40),
        _done("a", user="u3", completed=False, pct=0),
        _done("a", user="outsider", completed=True, pct=100),
        _done("b", user="u1", completed=True, pct=100),
    ]
    stats = content_stats("a", ["u1", "u2", "u3", "u4"], records)
    assert stats.total_students == 4
    assert stats.students_started == 2
    assert stats.students_completed == 1
    assert stats.average_progress == 70
