"""
Cache payload construction from a scrape response.

Turns the service's loosely shaped response into the record stored in
the shared cache: vendor, identity key, tracked fields and the
normalized extract document.
"""

from __future__ import annotations

import math
import re
from typing import Any
from urllib.parse import urlparse

from vendorsweep.core.cache.base import CacheRecord
from vendorsweep.core.quality import Quality

from .base import ScrapeResponse


# Fields counted towards fields_found
TRACKED_FIELDS = (
    "sun",
    "water",
    "plant_spacing",
    "days_to_germination",
    "harvest_days",
    "plant_description",
    "growing_notes",
    "imageUrl",
    "latin_name",
    "life_cycle",
    "hybrid_status",
)

# Service scrape_status -> quality label; anything else is partial
STATUS_QUALITY = {
    "AI_SEARCH": Quality.AI_ONLY,
    "Failed": Quality.FAILED,
    "Success": Quality.FULL,
}

_WS = re.compile(r"\s+")


def vendor_from_url(url: str) -> str:
    """Vendor domain for a URL: lower-cased hostname without www."""
    try:
        host = urlparse(url).hostname
    except ValueError:
        return "unknown"
    if not host:
        return "unknown"
    return re.sub(r"^www\.", "", host.lower())


def quality_from_status(status: str | None) -> Quality:
    return STATUS_QUALITY.get((status or "").strip(), Quality.PARTIAL)


def _key_part(value: str | None) -> str:
    return _WS.sub("_", (value or "").strip().lower())


def build_identity_key(response: ScrapeResponse) -> str:
    """Group key for results describing the same item, e.g. ``tomato_cherokee_purple``."""
    type_part = _key_part(response.plant_name or response.ogTitle)
    variety_part = _key_part(response.variety_name)
    if type_part and variety_part:
        return f"{type_part}_{variety_part}"
    return type_part or variety_part or "unknown"


def _has_value(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return not math.isnan(value)
    return False


def collect_scraped_fields(response: ScrapeResponse) -> list[str]:
    return [name for name in TRACKED_FIELDS if _has_value(response.field_value(name))]


def hero_image_url(response: ScrapeResponse) -> str | None:
    return response.imageUrl or response.hero_image_url or response.stock_photo_url or None


def build_extract_data(url: str, vendor: str, response: ScrapeResponse) -> dict[str, Any]:
    """Normalized document stored as the cache payload; absent values are omitted."""
    data: dict[str, Any] = {
        "type": response.plant_name or response.ogTitle or "",
        "variety": response.variety_name or "",
        "vendor": vendor,
        "tags": response.tags or [],
        "source_url": url,
    }
    optional = {
        "sowing_depth": response.sowing_depth,
        "spacing": response.plant_spacing,
        "sun_requirement": response.sun,
        "days_to_germination": response.days_to_germination,
        "days_to_maturity": response.harvest_days,
        "scientific_name": response.latin_name,
        "hero_image_url": hero_image_url(response),
        "plant_description": response.plant_description,
        "growing_notes": response.growing_notes,
        "life_cycle": response.life_cycle,
        "hybrid_status": response.hybrid_status,
    }
    data.update({k: v for k, v in optional.items() if v is not None})
    return data


def build_cache_record(url: str, response: ScrapeResponse) -> CacheRecord:
    vendor = vendor_from_url(url)
    return CacheRecord(
        source_url=url,
        identity_key=build_identity_key(response),
        vendor=vendor,
        scrape_quality=quality_from_status(response.scrape_status).value,
        extract_data=build_extract_data(url, vendor, response),
        original_hero_url=hero_image_url(response),
        scraped_fields=collect_scraped_fields(response),
    )
