"""In-memory store for user conflict resolutions."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from calendar_conflicts.domain.models import (
    ConflictDetail,
    ConflictResolution,
    ensure_utc,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConflictResolutionRepository:
    """Dict-backed store for ConflictResolution instances, keyed by conflict id.

    Implements the ``ResolutionTracker`` protocol used by
    ``ConflictDetector.detect_conflicts_with_resolutions``.
    """

    def __init__(self) -> None:
        self._store: dict[str, ConflictResolution] = {}

    def save(self, resolution: ConflictResolution) -> ConflictResolution:
        """Insert or replace the resolution for its conflict id."""
        self._store[resolution.conflict_id] = resolution
        logger.info(
            "Resolution %s saved for conflict %s",
            resolution.resolution_type,
            resolution.conflict_id,
        )
        return resolution

    def get(self, conflict_id: str) -> ConflictResolution | None:
        return self._store.get(conflict_id)

    def get_many(self, conflict_ids: list[str]) -> list[ConflictResolution]:
        """Return the stored resolutions among *conflict_ids*, in request order."""
        return [self._store[cid] for cid in conflict_ids if cid in self._store]

    def is_resolved(self, conflict_id: str, now: datetime | None = None) -> bool:
        """Return True for a live resolution; expired ones are dropped."""
        resolution = self._store.get(conflict_id)
        if resolution is None:
            return False
        if self._expired(resolution, ensure_utc(now) or _utcnow()):
            self.remove(conflict_id)
            return False
        return True

    def remove(self, conflict_id: str) -> None:
        self._store.pop(conflict_id, None)

    def remove_many(self, conflict_ids: list[str]) -> int:
        """Remove every listed resolution and return how many existed."""
        removed = 0
        for cid in conflict_ids:
            if self._store.pop(cid, None) is not None:
                removed += 1
        logger.info("Removed %d resolution(s)", removed)
        return removed

    def cleanup_expired(self, now: datetime | None = None) -> int:
        """Drop every expired resolution and return how many were removed."""
        current = ensure_utc(now) or _utcnow()
        expired = [
            cid for cid, r in self._store.items() if self._expired(r, current)
        ]
        for cid in expired:
            del self._store[cid]
        logger.info("Cleaned up %d expired resolution(s)", len(expired))
        return len(expired)

    def list_history(self, limit: int = 100) -> list[ConflictResolution]:
        """Return resolutions newest first."""
        return sorted(
            self._store.values(), key=lambda r: r.resolved_at, reverse=True
        )[:limit]

    async def filter_resolved(
        self, conflicts: list[ConflictDetail]
    ) -> list[ConflictDetail]:
        if not conflicts:
            return conflicts
        now = _utcnow()
        unresolved = [c for c in conflicts if not self.is_resolved(c.id, now)]
        logger.debug(
            "Filtered %d resolved conflict(s) out of %d",
            len(conflicts) - len(unresolved),
            len(conflicts),
        )
        return unresolved

    @staticmethod
    def _expired(resolution: ConflictResolution, now: datetime) -> bool:
        return resolution.expires_at is not None and resolution.expires_at < now
