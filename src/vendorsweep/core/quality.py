"""
Scrape quality labels and their ordering.

The cache merge policy only ever replaces a row when the incoming
quality ranks at least as high as the stored one.
"""

from __future__ import annotations

from enum import Enum


class Quality(str, Enum):
    """Quality labels reported for a scraped page."""

    FAILED = "failed"
    AI_ONLY = "ai_only"
    PARTIAL = "partial"
    FULL = "full"


QUALITY_RANK: dict[str, int] = {
    Quality.FAILED.value: 0,
    Quality.AI_ONLY.value: 1,
    Quality.PARTIAL.value: 2,
    Quality.FULL.value: 3,
}

# Unknown labels sort below "failed"
UNKNOWN_RANK = -1


def rank(label: object) -> int:
    """Return the ordinal rank of a quality label; anything else is unknown."""
    if isinstance(label, Quality):
        label = label.value
    if not isinstance(label, str):
        return UNKNOWN_RANK
    return QUALITY_RANK.get(label.strip().lower(), UNKNOWN_RANK)


def is_at_least(new: str | Quality | None, existing: str | Quality | None) -> bool:
    """Check whether ``new`` may overwrite ``existing``.

    A missing existing row (``None``) is always overwritable.
    """
    if existing is None:
        return True
    return rank(new) >= rank(existing)
