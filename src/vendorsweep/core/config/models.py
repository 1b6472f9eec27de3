"""
Pydantic configuration models for vendorsweep.

These models provide type-safe configuration with validation for:
- File locations (vendor queues, progress document)
- The remote scraping service
- Cache store selection and credentials
- Scheduler politeness settings
- Logging
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# Enums
# =============================================================================


class CacheBackendType(str, Enum):
    """Supported cache store backends."""

    REST = "rest"
    SQL = "sql"


# =============================================================================
# Paths
# =============================================================================


class PathsConfig(BaseModel):
    """Input and state file locations."""

    vendor_urls_file: Path = Field(
        default=Path("data/vendor-urls.json"),
        description="Crawler output mapping vendor domain to discovered URLs",
    )
    progress_file: Path = Field(
        default=Path("data/scrape-progress.json"),
        description="Resumable progress document",
    )


# =============================================================================
# Scraping Service
# =============================================================================


class ScraperConfig(BaseModel):
    """Remote page-scraping service settings."""

    base_url: str = Field(
        default="http://localhost:3000",
        description="Base URL of the scraping service",
    )
    api_path: str = Field(
        default="/api/seed/scrape-url",
        description="Path of the scrape endpoint",
    )
    timeout_seconds: float = Field(
        default=60.0,
        ge=1.0,
        le=600.0,
        description="Per-call timeout for one scrape request",
    )
    skip_ai_fallback: bool = Field(
        default=False,
        description="Ask the service to skip its expensive AI fallback tier",
    )

    @property
    def endpoint(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.api_path.lstrip('/')}"


# =============================================================================
# Cache Store
# =============================================================================


class RestCacheConfig(BaseModel):
    """PostgREST (Supabase) cache table settings."""

    url: str = Field(
        default="",
        description="Project URL, e.g. https://xyz.supabase.co",
    )
    service_key: str = Field(
        default="",
        description="Service role key (bypasses row level security)",
    )
    table: str = Field(
        default="global_plant_cache",
        description="Cache table name",
    )
    timeout_seconds: float = Field(
        default=5.0,
        ge=0.5,
        le=60.0,
        description="Timeout for cache reads and writes",
    )
    max_attempts: int = Field(
        default=2,
        ge=1,
        le=5,
        description="Attempts per cache call on transport errors",
    )


class SqlCacheConfig(BaseModel):
    """Local SQL cache settings."""

    url: str = Field(
        default="sqlite+aiosqlite:///data/cache.db",
        description="SQLAlchemy async database URL",
    )
    echo: bool = Field(
        default=False,
        description="Echo SQL statements (debugging)",
    )


class CacheConfig(BaseModel):
    """Cache gateway settings."""

    backend: CacheBackendType = Field(
        default=CacheBackendType.REST,
        description="Which cache store to write into",
    )
    rest: RestCacheConfig = Field(default_factory=RestCacheConfig)
    sql: SqlCacheConfig = Field(default_factory=SqlCacheConfig)


# =============================================================================
# Scheduler
# =============================================================================


class SchedulerConfig(BaseModel):
    """Round-robin scheduler and politeness settings."""

    max_parallel: int = Field(
        default=4,
        ge=1,
        le=64,
        description="Max simultaneously in-flight remote calls (batch size)",
    )
    retry_cooldown_seconds: float = Field(
        default=30.0,
        ge=0.0,
        description="Pause before the end-of-run retry pass",
    )
    base_delay_ms: int = Field(
        default=2000,
        ge=0,
        description="Fixed delay between dispatch batches in milliseconds",
    )
    jitter_ms: int = Field(
        default=2000,
        ge=0,
        description="Random extra delay added on top of base_delay_ms",
    )


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    file: Path | None = Field(
        default=Path("logs/vendorsweep.log"),
        description="Log file path",
    )
    json_format: bool = Field(
        default=True,
        description="Use JSON format for file logs",
    )
    rich_console: bool = Field(
        default=True,
        description="Use Rich for console output",
    )

    @field_validator("level")
    @classmethod
    def known_level(cls, v: str) -> str:
        """Reject levels the logging module doesn't know."""
        if v.upper() not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return v.upper()


# =============================================================================
# Application Configuration
# =============================================================================


class AppConfig(BaseModel):
    """Root application configuration.

    This is the main configuration object loaded from app.yaml.
    """

    paths: PathsConfig = Field(default_factory=PathsConfig)
    scraper: ScraperConfig = Field(default_factory=ScraperConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def ensure_directories(self) -> None:
        """Create required directories if they don't exist."""
        for path in [self.paths.vendor_urls_file, self.paths.progress_file]:
            path.parent.mkdir(parents=True, exist_ok=True)

        if self.logging.file:
            self.logging.file.parent.mkdir(parents=True, exist_ok=True)

    def summary(self) -> dict[str, Any]:
        """Non-secret settings for display."""
        return {
            "scraper": self.scraper.endpoint,
            "cache_backend": self.cache.backend.value,
            "max_parallel": self.scheduler.max_parallel,
            "delay_ms": f"{self.scheduler.base_delay_ms}-"
            f"{self.scheduler.base_delay_ms + self.scheduler.jitter_ms}",
            "skip_ai_fallback": self.scraper.skip_ai_fallback,
        }
