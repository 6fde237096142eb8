"""Rule evaluators: one pure function per ``ConflictType``.

Every evaluator has the signature ``(rule, proposed, existing, config)`` and
returns the findings for that rule, in the iteration order of ``existing``.
Events without a ``start_time`` are logged and skipped, never raised on.
"""

from __future__ import annotations

import logging
from typing import Callable

from calendar_conflicts.domain.models import (
    ConflictDetail,
    ConflictDetectionConfig,
    ConflictRule,
    ConflictType,
    Event,
)
from calendar_conflicts.services.intervals import (
    event_window,
    minutes_between,
    overlap_window,
    overlaps,
)

logger = logging.getLogger(__name__)

Evaluator = Callable[
    [ConflictRule, Event, list[Event], ConflictDetectionConfig], list[ConflictDetail]
]

_DAY_NAMES = [
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
]


def _sunday_based_weekday(weekday: int) -> int:
    """Convert Python's Monday=0 weekday to the Sunday=0 convention."""
    return (weekday + 1) % 7


def detect_temporal_overlaps(
    rule: ConflictRule,
    proposed: Event,
    existing: list[Event],
    config: ConflictDetectionConfig,
) -> list[ConflictDetail]:
    conflicts: list[ConflictDetail] = []

    proposed_window = event_window(proposed)
    if proposed_window is None:
        logger.warning(
            "Proposed event %s has no start_time; skipping overlap check", proposed.id
        )
        return conflicts
    proposed_start, proposed_end = proposed_window

    for other in existing:
        window = event_window(other)
        if window is None:
            logger.warning("Existing event %s has no start_time; skipping", other.id)
            continue
        other_start, other_end = window

        if not overlaps(
            proposed_start,
            proposed_end,
            other_start,
            other_end,
            touching=config.touching_counts_as_overlap,
        ):
            continue

        overlap = overlap_window(proposed_start, proposed_end, other_start, other_end)
        conflicts.append(
            ConflictDetail(
                id=f"{rule.id}_{other.id}",
                type=ConflictType.TEMPORAL_OVERLAP,
                severity=rule.severity,
                message=(
                    f'Event overlaps with "{other.title}" by '
                    f"{overlap.duration_minutes} minutes"
                ),
                conflicting_event=other,
                proposed_event=proposed,
                time_overlap=overlap,
            )
        )

    return conflicts


def detect_buffer_violations(
    rule: ConflictRule,
    proposed: Event,
    existing: list[Event],
    config: ConflictDetectionConfig,
) -> list[ConflictDetail]:
    conflicts: list[ConflictDetail] = []
    buffer_minutes = (
        rule.buffer_time_minutes
        if rule.buffer_time_minutes is not None
        else config.default_buffer_time_minutes
    )

    proposed_window = event_window(proposed)
    if proposed_window is None:
        logger.warning(
            "Proposed event %s has no start_time; skipping buffer check", proposed.id
        )
        return conflicts
    proposed_start, proposed_end = proposed_window

    for other in existing:
        window = event_window(other)
        if window is None:
            logger.warning("Existing event %s has no start_time; skipping", other.id)
            continue
        other_start, other_end = window

        # Neighbour finishing before the proposed event starts
        gap_before = minutes_between(other_end, proposed_start)
        if other_end <= proposed_start and gap_before < buffer_minutes:
            conflicts.append(
                ConflictDetail(
                    id=f"{rule.id}_before_{other.id}",
                    type=ConflictType.BUFFER_VIOLATION,
                    severity=rule.severity,
                    message=(
                        f"Insufficient buffer time ({round(gap_before)}min) between "
                        f'"{other.title}" and proposed event. '
                        f"Required: {buffer_minutes}min"
                    ),
                    conflicting_event=other,
                    proposed_event=proposed,
                )
            )

        # Neighbour starting after the proposed event ends
        gap_after = minutes_between(proposed_end, other_start)
        if proposed_end <= other_start and gap_after < buffer_minutes:
            conflicts.append(
                ConflictDetail(
                    id=f"{rule.id}_after_{other.id}",
                    type=ConflictType.BUFFER_VIOLATION,
                    severity=rule.severity,
                    message=(
                        f"Insufficient buffer time ({round(gap_after)}min) between "
                        f'proposed event and "{other.title}". '
                        f"Required: {buffer_minutes}min"
                    ),
                    conflicting_event=other,
                    proposed_event=proposed,
                )
            )

    return conflicts


def detect_resource_conflicts(
    rule: ConflictRule,
    proposed: Event,
    existing: list[Event],
    config: ConflictDetectionConfig,
) -> list[ConflictDetail]:
    """Flag shared clients and locations regardless of timing."""
    conflicts: list[ConflictDetail] = []

    for other in existing:
        affected: list[str] = []

        if proposed.client_name and proposed.client_name == other.client_name:
            affected.append(f"Client: {proposed.client_name}")

        if proposed.location and proposed.location == other.location:
            affected.append(f"Location: {proposed.location}")

        if affected:
            conflicts.append(
                ConflictDetail(
                    id=f"{rule.id}_{other.id}",
                    type=ConflictType.RESOURCE_CONFLICT,
                    severity=rule.severity,
                    message=(
                        f'Resource conflict with "{other.title}": '
                        f"{', '.join(affected)}"
                    ),
                    conflicting_event=other,
                    proposed_event=proposed,
                    affected_resources=affected,
                )
            )

    return conflicts


def detect_business_rule_violations(
    rule: ConflictRule,
    proposed: Event,
    existing: list[Event],
    config: ConflictDetectionConfig,
) -> list[ConflictDetail]:
    """Check work hours, work days and blackout periods for the proposed start.

    Findings reference the proposed event as their own conflicting event.
    """
    conflicts: list[ConflictDetail] = []
    start = proposed.start_time
    if start is None:
        logger.warning(
            "Proposed event %s has no start_time; skipping business rules", proposed.id
        )
        return conflicts

    work_hours = config.work_hours
    time_of_day = start.strftime("%H:%M")
    if time_of_day < work_hours.start or time_of_day > work_hours.end:
        conflicts.append(
            ConflictDetail(
                id=f"{rule.id}_work_hours_{proposed.id}",
                type=ConflictType.BUSINESS_RULE,
                severity=rule.severity,
                message=(
                    "Event scheduled outside work hours "
                    f"({work_hours.start}-{work_hours.end})"
                ),
                conflicting_event=proposed,
                proposed_event=proposed,
            )
        )

    weekday = _sunday_based_weekday(start.weekday())
    if weekday not in config.work_days:
        conflicts.append(
            ConflictDetail(
                id=f"{rule.id}_work_days_{proposed.id}",
                type=ConflictType.BUSINESS_RULE,
                severity=rule.severity,
                message=f"Event scheduled on non-work day ({_DAY_NAMES[weekday]})",
                conflicting_event=proposed,
                proposed_event=proposed,
            )
        )

    for blackout in config.blackout_periods:
        if blackout.start <= start <= blackout.end:
            conflicts.append(
                ConflictDetail(
                    id=f"{rule.id}_blackout_{blackout.reason}_{proposed.id}",
                    type=ConflictType.BUSINESS_RULE,
                    severity=rule.severity,
                    message=(
                        f"Event scheduled during blackout period: {blackout.reason}"
                    ),
                    conflicting_event=proposed,
                    proposed_event=proposed,
                )
            )

    return conflicts


def detect_client_preference_violations(
    rule: ConflictRule,
    proposed: Event,
    existing: list[Event],
    config: ConflictDetectionConfig,
) -> list[ConflictDetail]:
    """Limit how many appointments a priority client gets on one calendar day."""
    conflicts: list[ConflictDetail] = []
    client = proposed.client_name
    if not client or client not in config.priority_clients:
        return conflicts
    if proposed.start_time is None:
        logger.warning(
            "Proposed event %s has no start_time; skipping client limits", proposed.id
        )
        return conflicts

    day = proposed.start_time.date()
    same_day = 0
    for other in existing:
        if other.client_name != client:
            continue
        if other.start_time is None:
            logger.warning("Existing event %s has no start_time; skipping", other.id)
            continue
        if other.start_time.date() == day:
            same_day += 1

    if same_day >= config.max_events_per_client_per_day:
        conflicts.append(
            ConflictDetail(
                id=f"{rule.id}_{client}_{day.isoformat()}_{proposed.id}",
                type=ConflictType.CLIENT_PREFERENCE,
                severity=rule.severity,
                message=(
                    f'Too many appointments for priority client "{client}" '
                    "on this day"
                ),
                conflicting_event=proposed,
                proposed_event=proposed,
            )
        )

    return conflicts


EVALUATORS: dict[ConflictType, Evaluator] = {
    ConflictType.TEMPORAL_OVERLAP: detect_temporal_overlaps,
    ConflictType.BUFFER_VIOLATION: detect_buffer_violations,
    ConflictType.RESOURCE_CONFLICT: detect_resource_conflicts,
    ConflictType.BUSINESS_RULE: detect_business_rule_violations,
    ConflictType.CLIENT_PREFERENCE: detect_client_preference_violations,
}


def rule_applies(rule: ConflictRule, proposed: Event, existing: list[Event]) -> bool:
    """Return False when the rule's event-type filter or custom validator opts out."""
    if rule.apply_to_event_types is not None and (
        proposed.event_type not in rule.apply_to_event_types
    ):
        return False
    if rule.custom_validator is not None and not rule.custom_validator(
        proposed, existing
    ):
        return False
    return True


def run_rule(
    rule: ConflictRule,
    proposed: Event,
    existing: list[Event],
    config: ConflictDetectionConfig,
) -> list[ConflictDetail]:
    """Run a single rule through its evaluator.

    A rule type with no registered evaluator yields no findings.
    """
    if not rule_applies(rule, proposed, existing):
        return []
    evaluator = EVALUATORS.get(rule.type)
    if evaluator is None:
        logger.debug("No evaluator registered for rule type %s", rule.type)
        return []
    return evaluator(rule, proposed, existing, config)


def evaluate_rules(
    proposed: Event, existing: list[Event], config: ConflictDetectionConfig
) -> list[ConflictDetail]:
    """Run every enabled rule in declaration order and concatenate findings."""
    conflicts: list[ConflictDetail] = []
    for rule in config.enabled_rules():
        conflicts.extend(run_rule(rule, proposed, existing, config))
    return conflicts


def has_conflicts_only(
    proposed: Event, existing: list[Event], config: ConflictDetectionConfig
) -> bool:
    """Return True at the first finding; never builds suggestions."""
    for rule in config.enabled_rules():
        if run_rule(rule, proposed, existing, config):
            return True
    return False
