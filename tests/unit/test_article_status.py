"""Unit tests for article status ordering and progress markers."""

from __future__ import annotations

import pytest

from newsroom.services import article_status


def test_digest_markers() -> None:
    markers = [article_status.progress_marker(k, 7) for k in range(1, 7)]

    assert markers == ["14%", "29%", "43%", "57%", "71%", "86%"]


def test_aggregate_markers() -> None:
    markers = [article_status.progress_marker(k, 8) for k in range(1, 8)]

    assert markers == ["12%", "25%", "38%", "50%", "62%", "75%", "88%"]


@pytest.mark.parametrize(("completed", "total"), [(0, 7), (7, 7), (1, 1)])
def test_progress_marker_rejects_out_of_range_steps(completed: int, total: int) -> None:
    with pytest.raises(ValueError):
        article_status.progress_marker(completed, total)


def test_markers_stay_between_started_and_completed() -> None:
    for total in range(2, 30):
        ranks = [article_status.rank(article_status.progress_marker(k, total)) for k in range(1, total)]
        assert ranks == sorted(ranks)
        assert ranks[0] > article_status.rank("started")
        assert ranks[-1] < article_status.rank("completed")


@pytest.mark.parametrize(
    ("status", "percent"),
    [("created", 0), ("started", 0), ("43%", 43), ("completed", 100), ("failed", None)],
)
def test_percent_of(status: str, percent: int | None) -> None:
    assert article_status.percent_of(status) == percent


@pytest.mark.parametrize(
    ("current", "requested", "allowed"),
    [
        ("created", "started", True),
        ("started", "14%", True),
        ("14%", "29%", True),
        ("29%", "14%", False),
        ("29%", "29%", False),
        ("86%", "completed", True),
        ("43%", "failed", True),
        ("started", "failed", True),
        ("completed", "started", False),
        ("failed", "started", True),
        ("started", "started", False),
        ("57%", "started", False),
        ("completed", "failed", False),
        ("failed", "completed", False),
        ("completed", "archived", True),
        ("43%", "archived", False),
        ("failed", "archived", False),
        ("archived", "completed", True),
        ("archived", "started", False),
        ("created", "bogus", False),
    ],
)
def test_can_transition(current: str, requested: str, allowed: bool) -> None:
    assert article_status.can_transition(current, requested) is allowed


def test_running_and_terminal_flags() -> None:
    assert article_status.is_running("started")
    assert article_status.is_running("71%")
    assert not article_status.is_running("completed")
    assert article_status.is_terminal("failed")
    assert not article_status.is_terminal("archived")
