"""Scrape client and cache payload construction."""

from .base import ScrapeOptions, ScrapeResponse, ScrapeResult, Scraper
from .client import HttpScrapeClient
from .payload import (
    TRACKED_FIELDS,
    build_cache_record,
    build_extract_data,
    build_identity_key,
    collect_scraped_fields,
    hero_image_url,
    quality_from_status,
    vendor_from_url,
)

__all__ = [
    "ScrapeOptions",
    "ScrapeResponse",
    "ScrapeResult",
    "Scraper",
    "HttpScrapeClient",
    "TRACKED_FIELDS",
    "build_cache_record",
    "build_extract_data",
    "build_identity_key",
    "collect_scraped_fields",
    "hero_image_url",
    "quality_from_status",
    "vendor_from_url",
]
