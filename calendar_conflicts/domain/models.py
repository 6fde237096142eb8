"""Domain models for the calendar conflict engine."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import StrEnum
from typing import Annotated, Any, Callable

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator
from pydantic.json_schema import SkipJsonSchema


class ConflictType(StrEnum):
    TEMPORAL_OVERLAP = "temporal_overlap"
    BUFFER_VIOLATION = "buffer_violation"
    RESOURCE_CONFLICT = "resource_conflict"
    BUSINESS_RULE = "business_rule"
    CLIENT_PREFERENCE = "client_preference"


class ConflictSeverity(StrEnum):
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ResolutionStrategy(StrEnum):
    CANCEL = "cancel"
    ALLOW = "allow"
    RESCHEDULE = "reschedule"
    # Reserved for callers; never generated by the planner.
    OVERRIDE = "override"
    AUTO_RESCHEDULE = "auto_reschedule"
    SPLIT_EVENT = "split_event"
    NOTIFY_CLIENT = "notify_client"
    WAITLIST = "waitlist"


class RecurrenceFrequency(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class ResolutionType(StrEnum):
    ACCEPT = "accept"
    DELETE = "delete"
    RESCHEDULE = "reschedule"
    OVERRIDE = "override"
    IGNORE = "ignore"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC so every comparison is aware-to-aware."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# Naive datetimes are read as UTC
UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class Recurrence(BaseModel):
    frequency: RecurrenceFrequency
    interval: int = Field(default=1, ge=1)
    end_date: UtcDatetime | None = None


class Event(BaseModel):
    """A proposed or existing calendar event.

    ``start_time`` is optional so that a malformed record can still travel
    through a batch; evaluators skip it instead of failing the whole call.
    """

    id: str = Field(default_factory=_new_id)
    title: str = "Untitled event"
    start_time: UtcDatetime | None = None
    end_time: UtcDatetime | None = None
    duration_minutes: int | None = Field(default=None, ge=0)
    client_name: str | None = None
    location: str | None = None
    event_type: str | None = None
    recurrence: Recurrence | None = None
    tags: list[str] = Field(default_factory=list)
    notes: str | None = None

    @model_validator(mode="after")
    def _end_not_before_start(self) -> Event:
        if (
            self.start_time is not None
            and self.end_time is not None
            and self.end_time < self.start_time
        ):
            raise ValueError("end_time must not be before start_time")
        return self


# ---------------------------------------------------------------------------
# Rules and configuration
# ---------------------------------------------------------------------------


class ConflictRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: ConflictType
    enabled: bool = True
    severity: ConflictSeverity = ConflictSeverity.WARNING
    buffer_time_minutes: int | None = Field(default=None, ge=0)
    apply_to_event_types: list[str] | None = None
    custom_validator: SkipJsonSchema[
        Callable[[Event, list[Event]], bool] | None
    ] = Field(default=None, exclude=True)


class WorkHours(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Compared lexically, so both ends must be zero-padded 24h strings.
    start: str = Field(default="08:00", pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    end: str = Field(default="18:00", pattern=r"^([01]\d|2[0-3]):[0-5]\d$")


class BlackoutPeriod(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: UtcDatetime
    end: UtcDatetime
    reason: str


class ConflictDetectionConfig(BaseModel):
    """Immutable rule set and business settings used for one evaluation.

    Replace the whole object to change behaviour; see
    ``ConflictDetector.update_config``.
    """

    model_config = ConfigDict(frozen=True)

    rules: list[ConflictRule] = Field(default_factory=list)
    default_buffer_time_minutes: int = Field(default=30, ge=0)
    work_hours: WorkHours = Field(default_factory=WorkHours)
    work_days: list[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5])
    blackout_periods: list[BlackoutPeriod] = Field(default_factory=list)
    priority_clients: list[str] = Field(default_factory=list)
    max_events_per_client_per_day: int = Field(default=3, ge=0)
    touching_counts_as_overlap: bool = True

    @model_validator(mode="after")
    def _valid_work_days(self) -> ConflictDetectionConfig:
        if any(day < 0 or day > 6 for day in self.work_days):
            raise ValueError("work_days must be in 0 (Sunday) .. 6 (Saturday)")
        return self

    def enabled_rules(self) -> list[ConflictRule]:
        return [rule for rule in self.rules if rule.enabled]

    def with_overrides(self, **changes: Any) -> ConflictDetectionConfig:
        """Return a validated copy with *changes* applied."""
        data = self.model_dump()
        # Dumping drops the excluded validators, so carry the rule objects over.
        data["rules"] = list(self.rules)
        data.update(changes)
        return ConflictDetectionConfig(**data)


# ---------------------------------------------------------------------------
# Findings and suggestions
# ---------------------------------------------------------------------------


class TimeOverlap(BaseModel):
    start: datetime
    end: datetime
    duration_minutes: int


class ConflictDetail(BaseModel):
    id: str
    type: ConflictType
    severity: ConflictSeverity
    message: str
    conflicting_event: Event
    proposed_event: Event
    time_overlap: TimeOverlap | None = None
    affected_resources: list[str] | None = None


class AlternativeTimeSlot(BaseModel):
    start: datetime
    end: datetime
    confidence: float = Field(ge=0.0, le=1.0)


class ResolutionSuggestion(BaseModel):
    strategy: ResolutionStrategy
    description: str
    alternative_time_slots: list[AlternativeTimeSlot] | None = None
    estimated_impact: str
    requires_client_notification: bool = False


class ConflictResult(BaseModel):
    has_conflicts: bool
    conflicts: list[ConflictDetail] = Field(default_factory=list)
    suggestions: list[ResolutionSuggestion] = Field(default_factory=list)
    can_proceed: bool = True


class ConflictResolution(BaseModel):
    """A user's out-of-band decision about one conflict."""

    id: str = Field(default_factory=_new_id)
    conflict_id: str
    conflict_type: ConflictType
    resolution_type: ResolutionType
    affected_event_ids: list[str] = Field(default_factory=list)
    user_id: str | None = None
    conflict_message: str | None = None
    resolution_data: dict = Field(default_factory=dict)
    resolved_at: UtcDatetime = Field(default_factory=_utcnow)
    expires_at: UtcDatetime | None = None


# ---------------------------------------------------------------------------
# Availability
# ---------------------------------------------------------------------------


class AppointmentStatus(StrEnum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Participant(BaseModel):
    id: str
    name: str


class Appointment(BaseModel):
    id: str = Field(default_factory=_new_id)
    title: str
    start_time: UtcDatetime
    end_time: UtcDatetime
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    participants: list[Participant] = Field(default_factory=list)

    @model_validator(mode="after")
    def _end_after_start(self) -> Appointment:
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class AvailabilityRequest(BaseModel):
    participant_ids: list[str] = Field(min_length=1)
    start_date: UtcDatetime
    end_date: UtcDatetime
    duration_minutes: int = Field(gt=0)
    service: str | None = None

    @model_validator(mode="after")
    def _range_forward(self) -> AvailabilityRequest:
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class AvailabilitySlot(BaseModel):
    start_time: datetime
    end_time: datetime
    available: bool
    conflict_reason: str | None = None


class AppointmentConflict(BaseModel):
    participant_id: str
    participant_name: str
    conflicting_appointment_id: str
    conflicting_appointment_title: str
    conflict_start: datetime
    conflict_end: datetime


class AvailabilityResponse(BaseModel):
    available_slots: list[AvailabilitySlot] = Field(default_factory=list)
    conflicts: list[AppointmentConflict] = Field(default_factory=list)
    suggestions: list[AvailabilitySlot] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Request DTOs
# ---------------------------------------------------------------------------


class CheckConflictsRequest(BaseModel):
    proposed_event: Event
    existing_events: list[Event] = Field(default_factory=list)


class DragConflictsRequest(BaseModel):
    event: Event
    new_start: UtcDatetime
    new_end: UtcDatetime
    existing_events: list[Event] = Field(default_factory=list)

    @model_validator(mode="after")
    def _end_not_before_start(self) -> DragConflictsRequest:
        if self.new_end < self.new_start:
            raise ValueError("new_end must not be before new_start")
        return self


class BatchConflictsRequest(BaseModel):
    events: list[Event]


class AvailabilityCheckRequest(BaseModel):
    request: AvailabilityRequest
    appointments: list[Appointment] = Field(default_factory=list)
