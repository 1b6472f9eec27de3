"""
Cache store base classes and data structures.

Defines the record written for each scraped URL and the interface every
cache store implements.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass
class CacheRecord:
    """One row of the shared cache, keyed by source URL."""

    source_url: str
    identity_key: str
    vendor: str
    scrape_quality: str
    extract_data: dict[str, Any] = field(default_factory=dict)
    original_hero_url: str | None = None
    scraped_fields: list[str] = field(default_factory=list)

    def to_row(self) -> dict[str, Any]:
        """Column mapping shared by the REST and SQL stores."""
        return {
            "source_url": self.source_url,
            "identity_key": self.identity_key,
            "vendor": self.vendor,
            "extract_data": self.extract_data,
            "original_hero_url": self.original_hero_url,
            "scraped_fields": list(self.scraped_fields),
            "scrape_quality": self.scrape_quality,
        }


class UpsertOutcome(str, Enum):
    """Result of a quality-ranked upsert."""

    REPLACED = "replaced"  # row created or improved
    KEPT = "kept"  # stored row ranks higher; nothing written
    FAILED = "failed"  # store error

    @property
    def ok(self) -> bool:
        return self is not UpsertOutcome.FAILED


class CacheStore(ABC):
    """Abstract base class for cache storage engines."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Store identifier."""
        pass

    @abstractmethod
    async def exists(self, source_url: str) -> bool:
        """Check whether a row exists for a URL.

        Raises:
            CacheStoreError: On lookup failure
        """
        pass

    @abstractmethod
    async def get_quality(self, source_url: str) -> str | None:
        """Return the stored quality label, or None when no row exists.

        Raises:
            CacheStoreError: On lookup failure
        """
        pass

    @abstractmethod
    async def write(self, record: CacheRecord) -> bool:
        """Create or overwrite the row for ``record.source_url``.

        Stores that can guard atomically must skip the write when the
        stored quality ranks above the record's.

        Returns:
            True if a row was written, False if the store's guard kept
            the existing row

        Raises:
            CacheStoreError: On write failure
        """
        pass

    async def close(self) -> None:
        """Release connections."""
        pass

    async def __aenter__(self) -> "CacheStore":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


class CacheStoreError(Exception):
    """Base exception for cache store errors."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.cause = cause
