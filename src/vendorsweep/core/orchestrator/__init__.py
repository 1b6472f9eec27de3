"""Orchestrator - vendor queues, round-robin scheduling, retry pass."""

from .queues import VendorQueue, VendorQueueError, load_vendor_queues, parse_vendor_queues
from .runner import (
    BatchReport,
    ItemOutcome,
    ItemSource,
    ItemStatus,
    RoundRobinScheduler,
    RunStats,
    SchedulerSettings,
    VendorRunStats,
    WorkItem,
    run_sweep,
)

__all__ = [
    "VendorQueue",
    "VendorQueueError",
    "load_vendor_queues",
    "parse_vendor_queues",
    "BatchReport",
    "ItemOutcome",
    "ItemSource",
    "ItemStatus",
    "RoundRobinScheduler",
    "RunStats",
    "SchedulerSettings",
    "VendorRunStats",
    "WorkItem",
    "run_sweep",
]
