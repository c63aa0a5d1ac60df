# src/cache/models.py - v2
"""Cache domain models."""

from __future__ import annotations

from pydantic import BaseModel


class CacheStats(BaseModel):
    """Counters describing how a DocumentCache has served its callers."""

    hits: int = 0
    misses: int = 0
    tombstone_hits: int = 0
    backing_reads: int = 0
    backing_writes: int = 0
    elided_writes: int = 0
    invalidations: int = 0
    failed_updates: int = 0
    clears: int = 0
    entries: int = 0
    tombstones: int = 0

    @property
    def hit_ratio(self) -> float:
        """Share of reads answered locally (live entry or tombstone)."""
        local = self.hits + self.tombstone_hits
        total = local + self.misses
        return local / total if total else 0.0
