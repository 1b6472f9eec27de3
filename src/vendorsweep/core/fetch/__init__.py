"""Fetch utilities - batch throttling, retries."""

from .throttling import RateLimitConfig, RateLimiter
from .retries import RetryConfig, retry_async

__all__ = [
    "RateLimitConfig",
    "RateLimiter",
    "RetryConfig",
    "retry_async",
]
