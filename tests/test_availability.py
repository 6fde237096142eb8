"""Tests for the hourly availability probe."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from calendar_conflicts.domain.models import (
    Appointment,
    AppointmentStatus,
    AvailabilityRequest,
    Participant,
)
from calendar_conflicts.services.availability import check_availability

_DAY = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

ALICE = Participant(id="p-alice", name="Alice")
BOB = Participant(id="p-bob", name="Bob")
CAROL = Participant(id="p-carol", name="Carol")


def _request(hours: int = 8, duration: int = 60, participants=("p-alice",)):
    return AvailabilityRequest(
        participant_ids=list(participants),
        start_date=_DAY,
        end_date=_DAY + timedelta(hours=hours),
        duration_minutes=duration,
    )


def _appointment(start_hour: int, end_hour: int, *people, **overrides) -> Appointment:
    defaults = dict(
        title="Consultation",
        start_time=_DAY.replace(hour=start_hour),
        end_time=_DAY.replace(hour=end_hour),
        participants=list(people),
    )
    defaults.update(overrides)
    return Appointment(**defaults)


def test_empty_calendar_is_fully_available():
    response = check_availability(_request(), [])

    assert len(response.available_slots) == 8
    assert all(slot.available for slot in response.available_slots)
    assert response.conflicts == []
    assert [s.start_time for s in response.suggestions] == [
        _DAY + timedelta(hours=h) for h in range(5)
    ]


def test_busy_slots_are_marked_and_reported():
    apt = _appointment(10, 12, ALICE, BOB, title="Site survey")

    response = check_availability(_request(), [apt])

    busy = [s for s in response.available_slots if not s.available]
    assert [s.start_time.hour for s in busy] == [10, 11]
    assert all(s.conflict_reason == "Existing appointment" for s in busy)
    # One entry per busy slot for the requested participant only
    pairs = [
        (c.participant_id, c.conflicting_appointment_title) for c in response.conflicts
    ]
    assert pairs == [
        ("p-alice", "Site survey"),
        ("p-alice", "Site survey"),
    ]
    assert response.conflicts[0].conflict_start == apt.start_time


def test_back_to_back_appointment_leaves_slot_free():
    apt = _appointment(10, 11, ALICE)

    response = check_availability(_request(), [apt])

    free_hours = [s.start_time.hour for s in response.available_slots if s.available]
    assert 9 in free_hours
    assert 11 in free_hours
    assert 10 not in free_hours


def test_longer_duration_spans_into_next_appointment():
    apt = _appointment(11, 12, ALICE)

    response = check_availability(_request(duration=90), [apt])

    busy_hours = [
        s.start_time.hour for s in response.available_slots if not s.available
    ]
    assert busy_hours == [10, 11]


def test_other_participants_and_inactive_appointments_ignored():
    appointments = [
        _appointment(9, 10, CAROL),
        _appointment(10, 11, ALICE, status=AppointmentStatus.CANCELLED),
        _appointment(11, 12, ALICE, status=AppointmentStatus.COMPLETED),
    ]

    response = check_availability(_request(), appointments)

    assert all(slot.available for slot in response.available_slots)


def test_every_requested_participant_on_the_appointment_is_reported():
    apt = _appointment(9, 10, ALICE, BOB, CAROL)

    response = check_availability(_request(participants=("p-alice", "p-bob")), [apt])

    assert [c.participant_name for c in response.conflicts] == ["Alice", "Bob"]


def test_suggestions_capped_at_five():
    response = check_availability(_request(hours=24), [])

    assert len(response.suggestions) == 5


def test_request_requires_forward_range():
    with pytest.raises(ValidationError):
        AvailabilityRequest(
            participant_ids=["p-alice"],
            start_date=_DAY,
            end_date=_DAY,
            duration_minutes=60,
        )


def test_request_requires_participants():
    with pytest.raises(ValidationError):
        AvailabilityRequest(
            participant_ids=[],
            start_date=_DAY,
            end_date=_DAY + timedelta(hours=1),
            duration_minutes=60,
        )


def test_naive_appointment_times_are_read_as_utc():
    apt = Appointment(
        title="Walk-in",
        start_time=datetime(2026, 3, 2, 10, 0),
        end_time=datetime(2026, 3, 2, 11, 0),
        participants=[ALICE],
    )

    response = check_availability(_request(), [apt])

    busy = [s.start_time.hour for s in response.available_slots if not s.available]
    assert busy == [10]
