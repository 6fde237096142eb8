"""Pure time-interval helpers shared by the rule evaluators."""

from __future__ import annotations

from datetime import datetime, timedelta

from calendar_conflicts.domain.models import Event, TimeOverlap

DEFAULT_DURATION_MINUTES = 60


def resolve_end(
    start: datetime,
    end: datetime | None = None,
    duration_minutes: int | None = None,
) -> datetime:
    """Return *end* if given, otherwise ``start + duration`` (60 minutes by default)."""
    if end is not None:
        return end
    if duration_minutes is None:
        duration_minutes = DEFAULT_DURATION_MINUTES
    return start + timedelta(minutes=duration_minutes)


def event_window(event: Event) -> tuple[datetime, datetime] | None:
    """Return the event's ``(start, effective_end)`` or ``None`` without a start."""
    if event.start_time is None:
        return None
    return event.start_time, resolve_end(
        event.start_time, event.end_time, event.duration_minutes
    )


def overlaps(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
    touching: bool = True,
) -> bool:
    """Return True if the two windows conflict.

    Overlap rule: a_start < b_end AND a_end > b_start. With *touching* enabled,
    windows sharing the same start or the same end also conflict, which catches
    zero-length events placed on an existing boundary. Back-to-back windows
    (a_end == b_start) are NOT conflicts.
    """
    if a_start < b_end and a_end > b_start:
        return True
    return touching and (a_start == b_start or a_end == b_end)


def minutes_between(earlier: datetime, later: datetime) -> float:
    return abs((later - earlier).total_seconds()) / 60


def overlap_window(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> TimeOverlap:
    start = max(a_start, b_start)
    end = min(a_end, b_end)
    return TimeOverlap(
        start=start,
        end=end,
        duration_minutes=round(minutes_between(start, end)),
    )
