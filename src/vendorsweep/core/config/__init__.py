"""Configuration loading and validation."""

from .models import (
    # Enums
    CacheBackendType,
    # Config models
    AppConfig,
    PathsConfig,
    ScraperConfig,
    CacheConfig,
    RestCacheConfig,
    SqlCacheConfig,
    SchedulerConfig,
    LoggingConfig,
)
from .loader import (
    ConfigError,
    DEFAULT_APP_CONFIG,
    load_app_config,
    require_cache_credentials,
    validate_app_config_file,
)

__all__ = [
    # Enums
    "CacheBackendType",
    # Config models
    "AppConfig",
    "PathsConfig",
    "ScraperConfig",
    "CacheConfig",
    "RestCacheConfig",
    "SqlCacheConfig",
    "SchedulerConfig",
    "LoggingConfig",
    # Loaders
    "ConfigError",
    "DEFAULT_APP_CONFIG",
    "load_app_config",
    "require_cache_credentials",
    "validate_app_config_file",
]
