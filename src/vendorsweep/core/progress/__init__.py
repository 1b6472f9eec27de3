"""Durable sweep progress: completed/failed sets, cursors and counters."""

from .models import ProgressState, ProgressStats
from .store import ProgressStore

__all__ = ["ProgressState", "ProgressStats", "ProgressStore"]
