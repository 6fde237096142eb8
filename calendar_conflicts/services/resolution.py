"""Resolution planner: turns findings into remediation suggestions."""

from __future__ import annotations

import logging
from datetime import timedelta

from calendar_conflicts.domain.models import (
    AlternativeTimeSlot,
    ConflictDetail,
    ConflictDetectionConfig,
    ConflictSeverity,
    Event,
    ResolutionStrategy,
    ResolutionSuggestion,
)
from calendar_conflicts.services.intervals import event_window, minutes_between
from calendar_conflicts.services.rules import has_conflicts_only

logger = logging.getLogger(__name__)

SEARCH_RADIUS_MINUTES = 120
SEARCH_STEP_MINUTES = 30
MAX_ALTERNATIVES = 3


def has_critical(conflicts: list[ConflictDetail]) -> bool:
    return any(c.severity == ConflictSeverity.CRITICAL for c in conflicts)


def find_alternative_time_slots(
    proposed: Event,
    existing: list[Event],
    config: ConflictDetectionConfig,
) -> list[AlternativeTimeSlot]:
    """Probe slots within two hours either side of the proposed start.

    Each candidate keeps the proposed duration and is accepted only if the
    conflicts-only path reports nothing. Confidence falls linearly with
    distance: ``1 - |offset_hours| / 4``. Returns at most three slots, best
    first; on equal confidence the earlier offset comes first.
    """
    window = event_window(proposed)
    if window is None:
        return []
    original_start, original_end = window
    duration = original_end - original_start

    alternatives: list[AlternativeTimeSlot] = []
    for offset in range(
        -SEARCH_RADIUS_MINUTES, SEARCH_RADIUS_MINUTES + 1, SEARCH_STEP_MINUTES
    ):
        if offset == 0:
            continue
        new_start = original_start + timedelta(minutes=offset)
        new_end = new_start + duration
        candidate = proposed.model_copy(
            update={
                "start_time": new_start,
                "end_time": new_end,
                "duration_minutes": round(minutes_between(new_start, new_end)),
            }
        )
        if has_conflicts_only(candidate, existing, config):
            continue
        alternatives.append(
            AlternativeTimeSlot(
                start=new_start,
                end=new_end,
                confidence=1 - abs(offset / 60) / 4,
            )
        )

    # sorted() is stable, so ties keep ascending offset order
    alternatives = sorted(alternatives, key=lambda slot: slot.confidence, reverse=True)
    logger.debug(
        "Found %d alternative slot(s) for event %s", len(alternatives), proposed.id
    )
    return alternatives[:MAX_ALTERNATIVES]


def generate_suggestions(
    proposed: Event,
    conflicts: list[ConflictDetail],
    existing: list[Event],
    config: ConflictDetectionConfig,
) -> list[ResolutionSuggestion]:
    """Return cancel / allow / reschedule options for the given findings."""
    suggestions: list[ResolutionSuggestion] = []
    if not conflicts:
        return suggestions

    suggestions.append(
        ResolutionSuggestion(
            strategy=ResolutionStrategy.CANCEL,
            description="Cancel this event and do not schedule",
            estimated_impact="Event will not be created",
            requires_client_notification=False,
        )
    )

    if not has_critical(conflicts):
        suggestions.append(
            ResolutionSuggestion(
                strategy=ResolutionStrategy.ALLOW,
                description="Allow scheduling despite conflicts",
                estimated_impact=(
                    "May cause scheduling issues that need manual resolution"
                ),
                requires_client_notification=True,
            )
        )

    alternatives = find_alternative_time_slots(proposed, existing, config)
    if alternatives:
        suggestions.append(
            ResolutionSuggestion(
                strategy=ResolutionStrategy.RESCHEDULE,
                description="Reschedule to a different time",
                alternative_time_slots=alternatives,
                estimated_impact="Choose from available alternative time slots",
                requires_client_notification=True,
            )
        )

    return suggestions
