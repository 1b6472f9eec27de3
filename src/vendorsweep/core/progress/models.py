"""
Progress document models.

ProgressState is the durable record of what a sweep has finished, what
is still failing, and where each vendor's cursor stands. Only the
scheduler's control coroutine mutates it.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProgressStats(BaseModel):
    """Aggregate counters across all runs."""

    total_scraped: int = 0
    total_failed: int = 0
    total_cached: int = 0
    started_at: datetime = Field(default_factory=utcnow)
    last_updated: datetime = Field(default_factory=utcnow)

    @field_validator("total_scraped", "total_failed", "total_cached")
    @classmethod
    def _non_negative(cls, v: int) -> int:
        return max(v, 0)


class ProgressState(BaseModel):
    """Per-vendor completed/failed sets, cursors and counters.

    A (vendor, URL) pair is in at most one of ``completed`` and ``failed``.
    Cursors never move backwards.
    """

    completed: dict[str, set[str]] = Field(default_factory=dict)
    failed: dict[str, set[str]] = Field(default_factory=dict)
    cursor: dict[str, int] = Field(default_factory=dict)
    stats: ProgressStats = Field(default_factory=ProgressStats)

    @field_validator("cursor")
    @classmethod
    def _clamp_cursor(cls, v: dict[str, int]) -> dict[str, int]:
        return {vendor: max(idx, 0) for vendor, idx in v.items()}

    @model_validator(mode="after")
    def _settle_overlap(self) -> "ProgressState":
        # A URL both completed and failed was completed by a later run
        for vendor, done in self.completed.items():
            if vendor in self.failed:
                self.failed[vendor] -= done
        return self

    @field_serializer("completed", "failed")
    def _sorted_sets(self, value: dict[str, set[str]]) -> dict[str, list[str]]:
        return {vendor: sorted(urls) for vendor, urls in value.items()}

    # Queries

    def completed_for(self, vendor: str) -> set[str]:
        return self.completed.get(vendor, set())

    def failed_for(self, vendor: str) -> set[str]:
        return self.failed.get(vendor, set())

    def cursor_for(self, vendor: str) -> int:
        return self.cursor.get(vendor, 0)

    def is_completed(self, vendor: str, url: str) -> bool:
        return url in self.completed_for(vendor)

    def is_settled(self, vendor: str, url: str) -> bool:
        """Whether the URL has been classified as completed or failed."""
        return url in self.completed_for(vendor) or url in self.failed_for(vendor)

    @property
    def vendors(self) -> list[str]:
        seen = dict.fromkeys([*self.completed, *self.failed, *self.cursor])
        return list(seen)

    # Mutations

    def mark_completed(self, vendor: str, url: str) -> None:
        self.completed.setdefault(vendor, set()).add(url)
        self.failed.get(vendor, set()).discard(url)

    def mark_failed(self, vendor: str, url: str) -> None:
        if self.is_completed(vendor, url):
            return
        self.failed.setdefault(vendor, set()).add(url)

    def advance_cursor(self, vendor: str, index: int) -> None:
        if index > self.cursor_for(vendor):
            self.cursor[vendor] = index

    def record_cached(self) -> None:
        self.stats.total_cached += 1

    def record_scraped(self) -> None:
        self.stats.total_scraped += 1

    def record_failed(self) -> None:
        self.stats.total_failed += 1

    def record_retry_success(self) -> None:
        """A URL counted as failed has now been scraped."""
        self.stats.total_scraped += 1
        self.stats.total_failed = max(self.stats.total_failed - 1, 0)

    def record_retry_cached(self) -> None:
        """A URL counted as failed turned out to be cached already."""
        self.stats.total_cached += 1
        self.stats.total_failed = max(self.stats.total_failed - 1, 0)

    def touch(self) -> None:
        self.stats.last_updated = utcnow()
