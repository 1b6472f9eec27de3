"""
Scraper base classes and data structures.

Defines the response shape of the remote scraping service and the result
handed back to the scheduler for every URL.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict

from vendorsweep.core.cache.base import CacheRecord
from vendorsweep.core.quality import Quality


@dataclass
class ScrapeOptions:
    """Per-call options forwarded to the scraping service."""

    skip_ai_fallback: bool = False


class ScrapeResponse(BaseModel):
    """Fields the scraping service may return for a product page.

    Every field is optional; consumers handle absence explicitly. Only the
    fields used for the identity key, hero image and status are typed.
    """

    model_config = ConfigDict(extra="ignore")

    plant_name: str | None = None
    variety_name: str | None = None
    ogTitle: str | None = None
    tags: list[Any] | None = None

    # Descriptive values are stored as returned; vendors publish numbers too
    sowing_depth: Any = None
    plant_spacing: Any = None
    sun: Any = None
    water: Any = None
    days_to_germination: Any = None
    harvest_days: Any = None
    latin_name: Any = None
    life_cycle: Any = None
    hybrid_status: Any = None
    plant_description: Any = None
    growing_notes: Any = None

    imageUrl: str | None = None
    hero_image_url: str | None = None
    stock_photo_url: str | None = None

    scrape_status: str | None = None
    error: Any = None

    def field_value(self, name: str) -> Any:
        return getattr(self, name, None)


@dataclass
class ScrapeResult:
    """Outcome of one scrape call. Never persisted."""

    url: str
    success: bool
    quality: str
    fields_found: int = 0
    error: str | None = None
    record: CacheRecord | None = None

    @classmethod
    def failure(cls, url: str, error: str, fields_found: int = 0) -> "ScrapeResult":
        return cls(
            url=url,
            success=False,
            quality=Quality.FAILED.value,
            fields_found=fields_found,
            error=error,
        )


class Scraper(ABC):
    """Abstract base class for scrape clients.

    Implementations must not raise: every transport, protocol or data
    problem is reported as a failed ScrapeResult.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Client identifier."""
        pass

    @abstractmethod
    async def scrape(self, url: str, options: ScrapeOptions | None = None) -> ScrapeResult:
        """Scrape one URL."""
        pass

    async def close(self) -> None:
        """Clean up client resources."""
        pass

    async def __aenter__(self) -> "Scraper":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
