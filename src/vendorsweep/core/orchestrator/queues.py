"""
Vendor queue loading.

Reads the discovery output (``vendor-urls.json``) into ordered,
immutable per-vendor URL queues.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import orjson

logger = logging.getLogger(__name__)


class VendorQueueError(Exception):
    """Vendor URL file is missing, invalid, or selects no vendors."""

    def __init__(self, message: str, path: Path | None = None):
        super().__init__(message)
        self.path = path


@dataclass(frozen=True)
class VendorQueue:
    """Ordered URLs discovered for one vendor domain."""

    vendor: str
    urls: tuple[str, ...]

    def __len__(self) -> int:
        return len(self.urls)

    def position(self, url: str) -> int | None:
        try:
            return self.urls.index(url)
        except ValueError:
            return None


def _dedupe(urls: list[Any]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for url in urls:
        if isinstance(url, str) and url.strip():
            seen.setdefault(url.strip(), None)
    return tuple(seen)


def parse_vendor_queues(data: Any, vendor_filter: str | None = None) -> list[VendorQueue]:
    """Build queues from a decoded vendor URL document.

    Accepts ``{domain: {"discovered": n, "urls": [...]}}`` or
    ``{domain: [...]}``. Vendors keep document order; the filter is a
    substring match on the domain.
    """
    if not isinstance(data, dict):
        raise VendorQueueError("Vendor URL document must be a JSON object")

    queues = []
    for vendor, entry in data.items():
        if vendor_filter and vendor_filter not in vendor:
            continue
        if isinstance(entry, dict):
            urls = entry.get("urls") or []
        elif isinstance(entry, list):
            urls = entry
        else:
            raise VendorQueueError(f"Invalid entry for vendor '{vendor}'")
        if not isinstance(urls, list):
            raise VendorQueueError(f"'urls' for vendor '{vendor}' must be a list")
        queues.append(VendorQueue(vendor=vendor, urls=_dedupe(urls)))

    if not queues:
        if vendor_filter:
            raise VendorQueueError(f'No vendors matching "{vendor_filter}"')
        raise VendorQueueError("Vendor URL document lists no vendors")

    return queues


def load_vendor_queues(path: str | Path, vendor_filter: str | None = None) -> list[VendorQueue]:
    """Load vendor queues from a JSON file.

    Raises:
        VendorQueueError: If the file is missing, unreadable, or selects nothing
    """
    path = Path(path)
    if not path.exists():
        raise VendorQueueError(f"Vendor URL file not found: {path}", path=path)

    try:
        data = orjson.loads(path.read_bytes())
    except (OSError, orjson.JSONDecodeError) as e:
        raise VendorQueueError(f"Cannot read vendor URL file {path}: {e}", path=path) from e

    try:
        queues = parse_vendor_queues(data, vendor_filter)
    except VendorQueueError as e:
        e.path = path
        raise

    total = sum(len(q) for q in queues)
    logger.info(f"Loaded {len(queues)} vendor queue(s) with {total} URLs from {path}")
    return queues
