"""Service for probing participant availability on a fixed hourly grid."""

from __future__ import annotations

import logging
from datetime import timedelta

from calendar_conflicts.domain.models import (
    Appointment,
    AppointmentConflict,
    AppointmentStatus,
    AvailabilityRequest,
    AvailabilityResponse,
    AvailabilitySlot,
)

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = {
    AppointmentStatus.SCHEDULED,
    AppointmentStatus.CONFIRMED,
    AppointmentStatus.IN_PROGRESS,
}
SLOT_STEP = timedelta(hours=1)
MAX_SUGGESTIONS = 5


def _relevant_appointments(
    request: AvailabilityRequest, appointments: list[Appointment]
) -> list[Appointment]:
    """Active appointments inside the range that involve a requested participant."""
    wanted = set(request.participant_ids)
    return [
        apt
        for apt in appointments
        if apt.status in ACTIVE_STATUSES
        and apt.start_time >= request.start_date
        and apt.end_time <= request.end_date
        and any(p.id in wanted for p in apt.participants)
    ]


def check_availability(
    request: AvailabilityRequest, appointments: list[Appointment]
) -> AvailabilityResponse:
    """Return hourly slots for the range, marking those that clash.

    Overlap rule: slot_start < apt.end_time AND slot_end > apt.start_time, so
    back-to-back appointments leave the slot free. For a busy slot the first
    clashing appointment is reported once per requested participant on it.
    """
    relevant = _relevant_appointments(request, appointments)
    duration = timedelta(minutes=request.duration_minutes)
    wanted = set(request.participant_ids)

    slots: list[AvailabilitySlot] = []
    conflicts: list[AppointmentConflict] = []

    current = request.start_date
    while current < request.end_date:
        slot_end = current + duration
        clash = next(
            (
                apt
                for apt in relevant
                if current < apt.end_time and slot_end > apt.start_time
            ),
            None,
        )

        slots.append(
            AvailabilitySlot(
                start_time=current,
                end_time=slot_end,
                available=clash is None,
                conflict_reason="Existing appointment" if clash else None,
            )
        )

        if clash is not None:
            for participant in clash.participants:
                if participant.id not in wanted:
                    continue
                conflicts.append(
                    AppointmentConflict(
                        participant_id=participant.id,
                        participant_name=participant.name,
                        conflicting_appointment_id=clash.id,
                        conflicting_appointment_title=clash.title,
                        conflict_start=clash.start_time,
                        conflict_end=clash.end_time,
                    )
                )

        current += SLOT_STEP

    suggestions = [slot for slot in slots if slot.available][:MAX_SUGGESTIONS]
    logger.debug(
        "Availability for %s: %d slot(s), %d free",
        ",".join(request.participant_ids),
        len(slots),
        sum(1 for slot in slots if slot.available),
    )
    return AvailabilityResponse(
        available_slots=slots, conflicts=conflicts, suggestions=suggestions
    )
