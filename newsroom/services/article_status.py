"""Ordered article status values.

Status strings are what polling clients see. The pipeline moves an article
through ``created -> started -> <k>% ... -> completed`` (or ``failed``), and
the ordering here is what the store uses to refuse regressions.
"""

from __future__ import annotations

import re

CREATED = "created"
STARTED = "started"
COMPLETED = "completed"
FAILED = "failed"
ARCHIVED = "archived"

TERMINAL_STATUSES = frozenset({COMPLETED, FAILED})
# Completed versions are never rerun in place; a new run goes to a new version.
RESTARTABLE_STATUSES = frozenset({CREATED, FAILED})

_MARKER_PATTERN = re.compile(r"^(\d{1,2})%$")

# Ranks leave room between started (1) and terminal (200) for markers (100 + p).
_RANKS = {
    CREATED: 0,
    STARTED: 1,
    COMPLETED: 200,
    FAILED: 200,
    ARCHIVED: 300,
}


def progress_marker(completed_steps: int, total_steps: int) -> str:
    """Marker published after ``completed_steps`` of ``total_steps`` finished.

    Only intermediate steps get a marker; finishing the last step is
    reported as ``completed`` once the run output is validated.
    """
    if total_steps < 2:
        raise ValueError("a pipeline needs at least two steps to report progress")
    if not 1 <= completed_steps < total_steps:
        raise ValueError(
            f"completed_steps must be in [1, {total_steps - 1}], got {completed_steps}"
        )
    percent = round(100 * completed_steps / total_steps)
    return f"{min(max(percent, 1), 99)}%"


def is_progress_marker(status: str) -> bool:
    return _MARKER_PATTERN.match(status) is not None


def is_known(status: str) -> bool:
    return status in _RANKS or is_progress_marker(status)


def percent_of(status: str) -> int | None:
    """Human-readable completion percentage for a status value."""
    match = _MARKER_PATTERN.match(status)
    if match:
        return int(match.group(1))
    if status in (CREATED, STARTED):
        return 0
    if status in (COMPLETED, ARCHIVED):
        return 100
    return None


def rank(status: str) -> int:
    match = _MARKER_PATTERN.match(status)
    if match:
        return 100 + int(match.group(1))
    try:
        return _RANKS[status]
    except KeyError:
        raise ValueError(f"Unknown article status: {status!r}") from None


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


def is_running(status: str) -> bool:
    """True while a run is in flight (started or any progress marker)."""
    return status == STARTED or is_progress_marker(status)


def can_transition(current: str, requested: str) -> bool:
    """Whether ``current -> requested`` is a legal status move.

    Within a run the status only moves forward. A new run may start from
    created or failed. Archiving is only for completed articles.
    """
    if not is_known(current) or not is_known(requested):
        return False

    if requested == ARCHIVED:
        return current == COMPLETED
    if current == ARCHIVED:
        # unarchive
        return requested == COMPLETED
    if requested == STARTED:
        return current in RESTARTABLE_STATUSES
    if requested == FAILED:
        return current == CREATED or is_running(current)
    if is_terminal(current):
        return False
    return rank(requested) > rank(current)
