"""Service for expanding recurring events into individual occurrences, so a
snapshot of existing events can be checked against a proposed event."""

from __future__ import annotations

from datetime import datetime, timedelta

from dateutil.rrule import DAILY, MONTHLY, WEEKLY, YEARLY, rrule

from calendar_conflicts.domain.models import Event, RecurrenceFrequency
from calendar_conflicts.services.intervals import event_window

_FREQ_MAP = {
    RecurrenceFrequency.DAILY: DAILY,
    RecurrenceFrequency.WEEKLY: WEEKLY,
    RecurrenceFrequency.MONTHLY: MONTHLY,
    RecurrenceFrequency.YEARLY: YEARLY,
}


def build_rrule(event: Event, until: datetime) -> rrule | None:
    """Build a dateutil rule for *event*, bounded by *until* and its end date.

    Returns ``None`` if the event has no recurrence or no start.
    """
    if event.recurrence is None or event.start_time is None:
        return None

    recurrence = event.recurrence
    if recurrence.end_date is not None:
        until = min(until, recurrence.end_date)

    return rrule(
        _FREQ_MAP[recurrence.frequency],
        interval=recurrence.interval,
        dtstart=event.start_time,
        until=until,
    )


def expand_recurrence(
    event: Event, window_start: datetime, window_end: datetime
) -> list[Event]:
    """Return the occurrences of *event* that touch ``[window_start, window_end]``.

    The first occurrence keeps the parent's id; later ones get
    ``"<parent id>:<YYYYmmddTHHMM>"``. Each occurrence copies the parent's
    duration and has ``recurrence`` cleared. A non-recurring event is returned
    as-is when it falls inside the window.
    """
    window = event_window(event)
    if window is None:
        return []
    start, end = window
    duration = end - start

    rule = build_rrule(event, window_end)
    if rule is None:
        return [event] if start <= window_end and end >= window_start else []

    occurrences: list[Event] = []
    for dt in rule:
        occurrence_end = dt + duration
        if occurrence_end < window_start:
            continue
        occurrence_id = (
            event.id if dt == event.start_time else f"{event.id}:{dt:%Y%m%dT%H%M}"
        )
        occurrences.append(
            event.model_copy(
                update={
                    "id": occurrence_id,
                    "start_time": dt,
                    "end_time": occurrence_end,
                    "recurrence": None,
                }
            )
        )

    return occurrences


def expand_events(
    events: list[Event], window_start: datetime, window_end: datetime
) -> list[Event]:
    """Flatten a snapshot, expanding recurring events inside the window.

    Non-recurring events and events without a start pass through untouched,
    whatever their time.
    """
    expanded: list[Event] = []
    for event in events:
        if event.recurrence is None or event.start_time is None:
            expanded.append(event)
            continue
        expanded.extend(expand_recurrence(event, window_start, window_end))
    return expanded


def expansion_window(
    event: Event, margin: timedelta
) -> tuple[datetime, datetime] | None:
    """Return the proposed event's window widened by *margin* on both sides."""
    window = event_window(event)
    if window is None:
        return None
    start, end = window
    return start - margin, end + margin
