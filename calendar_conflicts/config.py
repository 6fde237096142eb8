"""Process settings and the default conflict rule set.

Values come from the environment (optionally a ``.env`` file); whoever boots the
process owns loading any saved overrides on top of these defaults.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

from calendar_conflicts.domain.models import (
    ConflictDetectionConfig,
    ConflictRule,
    ConflictSeverity,
    ConflictType,
    WorkHours,
)

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

DEFAULT_BUFFER_MINUTES = int(os.getenv("CONFLICT_DEFAULT_BUFFER_MINUTES", "30"))
WORK_HOURS_START = os.getenv("CONFLICT_WORK_HOURS_START", "08:00")
WORK_HOURS_END = os.getenv("CONFLICT_WORK_HOURS_END", "18:00")
# 0=Sunday .. 6=Saturday
WORK_DAYS = [
    int(day)
    for day in os.getenv("CONFLICT_WORK_DAYS", "1,2,3,4,5").split(",")
    if day.strip()
]
MAX_CLIENT_EVENTS_PER_DAY = int(os.getenv("CONFLICT_MAX_CLIENT_EVENTS_PER_DAY", "3"))
PRIORITY_CLIENTS = [
    name.strip()
    for name in os.getenv("CONFLICT_PRIORITY_CLIENTS", "").split(",")
    if name.strip()
]


def default_rules() -> list[ConflictRule]:
    return [
        ConflictRule(
            id="temporal_overlap",
            name="Prevent Time Overlaps",
            type=ConflictType.TEMPORAL_OVERLAP,
            severity=ConflictSeverity.ERROR,
        ),
        ConflictRule(
            id="buffer_time",
            name="Enforce Buffer Time",
            type=ConflictType.BUFFER_VIOLATION,
            severity=ConflictSeverity.WARNING,
            buffer_time_minutes=30,
        ),
        ConflictRule(
            id="client_double_booking",
            name="Prevent Client Double Booking",
            type=ConflictType.RESOURCE_CONFLICT,
            severity=ConflictSeverity.ERROR,
        ),
        ConflictRule(
            id="work_hours",
            name="Enforce Work Hours",
            type=ConflictType.BUSINESS_RULE,
            severity=ConflictSeverity.WARNING,
        ),
        ConflictRule(
            id="priority_client_limits",
            name="Priority Client Scheduling Limits",
            type=ConflictType.CLIENT_PREFERENCE,
            severity=ConflictSeverity.WARNING,
        ),
    ]


def default_config() -> ConflictDetectionConfig:
    """Build the default configuration from the environment settings."""
    return ConflictDetectionConfig(
        rules=default_rules(),
        default_buffer_time_minutes=DEFAULT_BUFFER_MINUTES,
        work_hours=WorkHours(start=WORK_HOURS_START, end=WORK_HOURS_END),
        work_days=WORK_DAYS,
        priority_clients=PRIORITY_CLIENTS,
        max_events_per_client_per_day=MAX_CLIENT_EVENTS_PER_DAY,
    )
