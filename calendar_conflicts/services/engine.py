"""Conflict detector: aggregates rule findings and resolution suggestions."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, Protocol

from calendar_conflicts.config import default_config
from calendar_conflicts.domain.models import (
    ConflictDetail,
    ConflictDetectionConfig,
    ConflictResult,
    Event,
    ensure_utc,
)
from calendar_conflicts.services.intervals import minutes_between
from calendar_conflicts.services.resolution import generate_suggestions, has_critical
from calendar_conflicts.services.rules import evaluate_rules

logger = logging.getLogger(__name__)


class ResolutionTracker(Protocol):
    """Knows which conflicts a user has already acknowledged."""

    async def filter_resolved(
        self, conflicts: list[ConflictDetail]
    ) -> list[ConflictDetail]: ...


class ConflictDetector:
    """Evaluates proposed events against the active configuration.

    The configuration is injected and replaced as a whole; each call reads it
    once at entry, so a concurrent ``update_config`` is seen either fully or
    not at all. Hold one detector per tenant rather than sharing a global.
    """

    def __init__(self, config: ConflictDetectionConfig | None = None) -> None:
        self._config = config or default_config()
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def get_config(self) -> ConflictDetectionConfig:
        with self._lock:
            return self._config

    def update_config(self, config: ConflictDetectionConfig) -> None:
        """Swap in *config* as the active configuration."""
        with self._lock:
            self._config = config
        logger.info(
            "Conflict configuration replaced (%d rules, %d enabled)",
            len(config.rules),
            len(config.enabled_rules()),
        )

    # ------------------------------------------------------------------
    # Detection
    # ------------------------------------------------------------------

    def detect_conflicts(
        self, proposed: Event, existing: list[Event]
    ) -> ConflictResult:
        return self._detect(proposed, existing, self.get_config())

    async def detect_conflicts_with_resolutions(
        self,
        proposed: Event,
        existing: list[Event],
        tracker: ResolutionTracker,
    ) -> ConflictResult:
        """Like ``detect_conflicts`` but drops conflicts the user already resolved."""
        config = self.get_config()
        initial = self._detect(proposed, existing, config)
        if not initial.conflicts:
            return initial

        conflicts = initial.conflicts
        unresolved = await tracker.filter_resolved(conflicts)
        logger.debug(
            "Event %s: %d of %d conflict(s) unresolved",
            proposed.id,
            len(unresolved),
            len(conflicts),
        )
        return self._build_result(proposed, unresolved, existing, config)

    def check_drag_conflicts(
        self,
        event: Event,
        new_start: datetime,
        new_end: datetime,
        existing: list[Event],
    ) -> ConflictResult:
        """Check a hypothetical move of *event*; it never conflicts with itself."""
        new_start = ensure_utc(new_start)
        new_end = ensure_utc(new_end)
        moved = event.model_copy(
            update={
                "start_time": new_start,
                "end_time": new_end,
                "duration_minutes": round(minutes_between(new_start, new_end)),
            }
        )
        others = [e for e in existing if e.id != event.id]
        return self.detect_conflicts(moved, others)

    def detect_batch_conflicts(
        self,
        events: list[Event],
        expand_others: Callable[[Event, list[Event]], list[Event]] | None = None,
    ) -> dict[str, ConflictResult]:
        """Check every event against the rest of the batch (pairwise, O(n^2)).

        *expand_others* may rewrite each event's comparison set, e.g. to turn
        recurring events into occurrences around that event.
        """
        results: dict[str, ConflictResult] = {}
        for index, event in enumerate(events):
            others = events[:index] + events[index + 1 :]
            if expand_others is not None:
                others = expand_others(event, others)
            results[event.id] = self.detect_conflicts(event, others)
        return results

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _detect(
        self,
        proposed: Event,
        existing: list[Event],
        config: ConflictDetectionConfig,
    ) -> ConflictResult:
        conflicts = evaluate_rules(proposed, existing, config)
        logger.debug(
            "Event %s: %d conflict(s) against %d existing event(s)",
            proposed.id,
            len(conflicts),
            len(existing),
        )
        return self._build_result(proposed, conflicts, existing, config)

    @staticmethod
    def _build_result(
        proposed: Event,
        conflicts: list[ConflictDetail],
        existing: list[Event],
        config: ConflictDetectionConfig,
    ) -> ConflictResult:
        suggestions = generate_suggestions(proposed, conflicts, existing, config)
        return ConflictResult(
            has_conflicts=bool(conflicts),
            conflicts=conflicts,
            suggestions=suggestions,
            can_proceed=not has_critical(conflicts),
        )
