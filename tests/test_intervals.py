"""Tests for the interval helpers."""

from datetime import datetime, timedelta, timezone

from calendar_conflicts.domain.models import Event
from calendar_conflicts.services.intervals import (
    event_window,
    overlap_window,
    overlaps,
    resolve_end,
)


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2025, 1, 1, hour, minute, tzinfo=timezone.utc)


def test_resolve_end_prefers_explicit_end():
    assert resolve_end(_at(9), _at(9, 45), duration_minutes=120) == _at(9, 45)


def test_resolve_end_uses_duration():
    assert resolve_end(_at(9), duration_minutes=15) == _at(9, 15)


def test_resolve_end_defaults_to_one_hour():
    assert resolve_end(_at(9)) == _at(10)


def test_event_window_without_start():
    assert event_window(Event(title="No start")) is None


def test_event_window_from_duration():
    event = Event(title="Call", start_time=_at(9), duration_minutes=30)
    assert event_window(event) == (_at(9), _at(9, 30))


def test_no_overlap():
    """Windows that don't overlap should not conflict."""
    assert not overlaps(_at(10), _at(11), _at(8), _at(9))


def test_partial_overlap():
    """A window that partially overlaps should conflict."""
    assert overlaps(_at(10), _at(11), _at(9), _at(10, 30))


def test_exact_boundary_no_conflict():
    """When existing end == new start, there is no conflict (boundary touch)."""
    assert not overlaps(_at(10), _at(11), _at(9), _at(10))
    assert not overlaps(_at(9), _at(10), _at(10), _at(11))


def test_zero_length_event_on_shared_start_conflicts():
    assert overlaps(_at(9), _at(9), _at(9), _at(10))


def test_zero_length_event_on_shared_start_without_touching():
    assert not overlaps(_at(9), _at(9), _at(9), _at(10), touching=False)


def test_shared_end_conflicts_only_when_touching():
    assert overlaps(_at(10), _at(10), _at(9), _at(10))
    assert not overlaps(_at(10), _at(10), _at(9), _at(10), touching=False)


def test_overlap_window_is_intersection():
    window = overlap_window(_at(9), _at(10), _at(9, 30), _at(10, 30))
    assert window.start == _at(9, 30)
    assert window.end == _at(10)
    assert window.duration_minutes == 30


def test_overlap_window_is_symmetric():
    a = overlap_window(_at(9), _at(11), _at(10), _at(12))
    b = overlap_window(_at(10), _at(12), _at(9), _at(11))
    assert a == b
    assert a.duration_minutes == int(timedelta(hours=1).total_seconds() // 60)
