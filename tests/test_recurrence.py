"""Tests for the recurrence expansion service."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from calendar_conflicts.domain.models import Event, Recurrence, RecurrenceFrequency
from calendar_conflicts.services.recurrence import (
    build_rrule,
    expand_events,
    expand_recurrence,
    expansion_window,
)

_START = datetime(2026, 2, 19, 15, 30, tzinfo=timezone.utc)  # a Thursday


def _weekly(**recurrence) -> Event:
    return Event(
        title="Soccer practice",
        start_time=_START,
        end_time=_START + timedelta(hours=1, minutes=30),
        location="City Park Field 4",
        recurrence=Recurrence(frequency=RecurrenceFrequency.WEEKLY, **recurrence),
    )


# ---------------------------------------------------------------------------
# build_rrule
# ---------------------------------------------------------------------------


def test_build_rrule_returns_none_without_recurrence():
    event = Event(title="One-off", start_time=_START)
    assert build_rrule(event, _START + timedelta(days=30)) is None


def test_build_rrule_every_other_week():
    rule = build_rrule(_weekly(interval=2), _START + timedelta(weeks=5))
    assert list(rule) == [
        _START,
        _START + timedelta(weeks=2),
        _START + timedelta(weeks=4),
    ]


def test_build_rrule_respects_end_date():
    event = _weekly(end_date=_START + timedelta(weeks=1))
    rule = build_rrule(event, _START + timedelta(weeks=10))
    assert list(rule) == [_START, _START + timedelta(weeks=1)]


def test_build_rrule_with_naive_end_date():
    event = _weekly(end_date=datetime(2026, 2, 26, 23, 0))
    rule = build_rrule(event, _START + timedelta(weeks=10))
    assert list(rule) == [_START, _START + timedelta(weeks=1)]


def test_build_rrule_daily():
    event = Event(
        title="Standup",
        start_time=_START,
        duration_minutes=15,
        recurrence=Recurrence(frequency=RecurrenceFrequency.DAILY),
    )
    rule = build_rrule(event, _START + timedelta(days=2))
    assert len(list(rule)) == 3


# ---------------------------------------------------------------------------
# expand_recurrence
# ---------------------------------------------------------------------------


def test_expand_within_window():
    parent = _weekly()
    window_start = _START + timedelta(weeks=2) - timedelta(days=1)
    window_end = _START + timedelta(weeks=2) + timedelta(days=1)

    occurrences = expand_recurrence(parent, window_start, window_end)

    assert len(occurrences) == 1
    child = occurrences[0]
    assert child.start_time == _START + timedelta(weeks=2)
    assert child.end_time - child.start_time == timedelta(hours=1, minutes=30)
    assert child.id == f"{parent.id}:20260305T1530"
    assert child.recurrence is None
    assert child.location == parent.location


def test_first_occurrence_keeps_parent_id():
    parent = _weekly()
    occurrences = expand_recurrence(parent, _START, _START + timedelta(days=1))
    assert [o.id for o in occurrences] == [parent.id]


def test_occurrence_running_into_window_is_included():
    parent = _weekly()
    occurrences = expand_recurrence(
        parent, _START + timedelta(hours=1), _START + timedelta(hours=2)
    )
    assert len(occurrences) == 1


def test_non_recurring_event_outside_window_is_dropped():
    event = Event(title="One-off", start_time=_START, duration_minutes=30)
    window = (_START + timedelta(days=1), _START + timedelta(days=2))
    assert expand_recurrence(event, *window) == []


# ---------------------------------------------------------------------------
# expand_events
# ---------------------------------------------------------------------------


def test_expand_events_passes_through_plain_and_malformed_events():
    plain = Event(title="Far away", start_time=_START + timedelta(days=90))
    malformed = Event(title="No start")
    recurring = _weekly()

    window = (_START + timedelta(weeks=1), _START + timedelta(weeks=1, hours=2))
    expanded = expand_events([plain, malformed, recurring], *window)

    assert expanded[0] is plain
    assert expanded[1] is malformed
    assert [e.start_time for e in expanded[2:]] == [_START + timedelta(weeks=1)]


def test_expansion_window_adds_margin():
    event = Event(title="Call", start_time=_START, duration_minutes=30)
    assert expansion_window(event, timedelta(days=1)) == (
        _START - timedelta(days=1),
        _START + timedelta(minutes=30) + timedelta(days=1),
    )
    assert expansion_window(Event(title="Draft"), timedelta(days=1)) is None
