"""CLI command modules."""

from . import progress, scrape

__all__ = [
    "progress",
    "scrape",
]
