"""FastAPI application: a thin HTTP surface over the conflict engine."""

from __future__ import annotations

import logging
from datetime import timedelta

from fastapi import FastAPI, HTTPException

from calendar_conflicts.config import LOG_LEVEL
from calendar_conflicts.domain.models import (
    AvailabilityCheckRequest,
    AvailabilityResponse,
    BatchConflictsRequest,
    CheckConflictsRequest,
    ConflictDetectionConfig,
    ConflictResolution,
    ConflictResult,
    DragConflictsRequest,
    Event,
)
from calendar_conflicts.repos.memory import ConflictResolutionRepository
from calendar_conflicts.services.availability import check_availability
from calendar_conflicts.services.engine import ConflictDetector
from calendar_conflicts.services.recurrence import expand_events, expansion_window

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Calendar Conflict Service")

# ── Singletons ────────────────
detector = ConflictDetector()
resolution_repo = ConflictResolutionRepository()

# Recurring existing events are expanded this far around the proposed window.
RECURRENCE_MARGIN = timedelta(days=1)


def _expand_existing(proposed: Event, existing: list[Event]) -> list[Event]:
    window = expansion_window(proposed, RECURRENCE_MARGIN)
    if window is None:
        return existing
    return expand_events(existing, *window)


# ── Routes ────────────────────────────────────────────────────────────


@app.post("/conflicts/check", response_model=ConflictResult)
def check_conflicts(payload: CheckConflictsRequest) -> ConflictResult:
    """Check a proposed event against a snapshot of existing events."""
    existing = _expand_existing(payload.proposed_event, payload.existing_events)
    return detector.detect_conflicts(payload.proposed_event, existing)


@app.post("/conflicts/check-with-resolutions", response_model=ConflictResult)
async def check_conflicts_with_resolutions(
    payload: CheckConflictsRequest,
) -> ConflictResult:
    """Same as /conflicts/check, minus conflicts the user already resolved."""
    existing = _expand_existing(payload.proposed_event, payload.existing_events)
    return await detector.detect_conflicts_with_resolutions(
        payload.proposed_event, existing, resolution_repo
    )


@app.post("/conflicts/drag", response_model=ConflictResult)
def check_drag(payload: DragConflictsRequest) -> ConflictResult:
    """Preview conflicts for moving or resizing an event."""
    # Drop the dragged series first; its own occurrences never conflict with it.
    others = [e for e in payload.existing_events if e.id != payload.event.id]
    existing = expand_events(
        others,
        payload.new_start - RECURRENCE_MARGIN,
        payload.new_end + RECURRENCE_MARGIN,
    )
    return detector.check_drag_conflicts(
        payload.event, payload.new_start, payload.new_end, existing
    )


@app.post("/conflicts/batch", response_model=dict[str, ConflictResult])
def check_batch(payload: BatchConflictsRequest) -> dict[str, ConflictResult]:
    """Check each event of the batch against all the others."""
    return detector.detect_batch_conflicts(
        payload.events, expand_others=_expand_existing
    )


@app.post("/conflicts/resolutions", response_model=ConflictResolution)
def record_resolution(resolution: ConflictResolution) -> ConflictResolution:
    """Record a user's decision so the conflict is no longer reported."""
    return resolution_repo.save(resolution)


@app.get("/conflicts/resolutions", response_model=list[ConflictResolution])
def list_resolutions(limit: int = 100) -> list[ConflictResolution]:
    return resolution_repo.list_history(limit)


@app.get("/conflicts/resolutions/{conflict_id}", response_model=ConflictResolution)
def get_resolution(conflict_id: str) -> ConflictResolution:
    resolution = resolution_repo.get(conflict_id)
    if resolution is None:
        raise HTTPException(status_code=404, detail="Resolution not found")
    return resolution


@app.delete("/conflicts/resolutions/{conflict_id}", status_code=200)
def delete_resolution(conflict_id: str) -> dict:
    if resolution_repo.get(conflict_id) is None:
        raise HTTPException(status_code=404, detail="Resolution not found")
    resolution_repo.remove(conflict_id)
    return {"status": "removed"}


@app.get("/config", response_model=ConflictDetectionConfig)
def get_config() -> ConflictDetectionConfig:
    return detector.get_config()


@app.put("/config", response_model=ConflictDetectionConfig)
def replace_config(config: ConflictDetectionConfig) -> ConflictDetectionConfig:
    """Replace the active configuration as a whole."""
    detector.update_config(config)
    return config


@app.post("/availability", response_model=AvailabilityResponse)
def availability(payload: AvailabilityCheckRequest) -> AvailabilityResponse:
    """Return hourly availability for the requested participants."""
    return check_availability(payload.request, payload.appointments)
