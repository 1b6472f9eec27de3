"""
Loads configs/app.yaml into AppConfig.

Environment references (${VAR}, ${VAR:-default}) are expanded before
validation so credentials can stay in .env files. A missing file means
all defaults.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import AppConfig, CacheBackendType


DEFAULT_CONFIG_PATH = Path("configs/app.yaml")

# Written by `vendorsweep init`; also parsed when no app.yaml exists so the
# environment variables below still apply.
DEFAULT_APP_CONFIG = """\
# vendorsweep configuration
# ${VAR} and ${VAR:-default} are expanded from the environment.

paths:
  vendor_urls_file: data/vendor-urls.json
  progress_file: data/scrape-progress.json

scraper:
  base_url: ${SCRAPE_TEST_BASE_URL:-http://localhost:3000}
  api_path: /api/seed/scrape-url
  timeout_seconds: 60
  skip_ai_fallback: false

cache:
  backend: ${VENDORSWEEP_CACHE_BACKEND:-rest}
  rest:
    url: ${NEXT_PUBLIC_SUPABASE_URL}
    service_key: ${SUPABASE_SERVICE_ROLE_KEY}
    table: global_plant_cache
    timeout_seconds: 5
    max_attempts: 2
  sql:
    url: sqlite+aiosqlite:///data/cache.db

scheduler:
  max_parallel: 4
  retry_cooldown_seconds: 30
  base_delay_ms: 2000
  jitter_ms: 2000

logging:
  level: INFO
  file: logs/vendorsweep.log
  json_format: true
  rich_console: true
"""

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


class ConfigError(Exception):
    """Configuration loading or validation error."""

    def __init__(self, message: str, path: Path | None = None, details: str | None = None):
        self.path = path
        self.details = details
        super().__init__(message)


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents as a dictionary.

    Raises:
        ConfigError: If file cannot be read or parsed
    """
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}", path=path)

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML in {path}",
            path=path,
            details=str(e),
        ) from e
    except OSError as e:
        raise ConfigError(
            f"Cannot read {path}",
            path=path,
            details=str(e),
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping at the top of {path}", path=path)
    return data


def _expand_env_vars(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively expand environment variables in string values.

    Supports ${VAR} and ${VAR:-default} syntax.
    """
    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default = match.group(2) or ""
        return os.environ.get(var_name) or default

    def expand_value(value: Any) -> Any:
        if isinstance(value, str):
            return _ENV_PATTERN.sub(replacer, value)
        elif isinstance(value, dict):
            return {k: expand_value(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [expand_value(item) for item in value]
        return value

    return expand_value(data)


def load_app_config(
    path: Path | str | None = None,
    expand_env: bool = True,
) -> AppConfig:
    """Load application configuration from YAML file.

    Args:
        path: Path to app.yaml (default: configs/app.yaml)
        expand_env: Whether to expand environment variables

    Returns:
        Validated AppConfig instance

    Raises:
        ConfigError: If configuration is invalid
    """
    path = DEFAULT_CONFIG_PATH if path is None else Path(path)

    if path.exists():
        data = _load_yaml_file(path)
    else:
        data = yaml.safe_load(DEFAULT_APP_CONFIG)

    if expand_env:
        data = _expand_env_vars(data)

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid app configuration in {path}",
            path=path,
            details=str(e),
        ) from e


def require_cache_credentials(config: AppConfig) -> None:
    """Fail fast when the selected cache store can't be reached.

    Raises:
        ConfigError: If REST credentials are missing
    """
    if config.cache.backend != CacheBackendType.REST:
        return

    missing = []
    if not config.cache.rest.url:
        missing.append("NEXT_PUBLIC_SUPABASE_URL (cache.rest.url)")
    if not config.cache.rest.service_key:
        missing.append("SUPABASE_SERVICE_ROLE_KEY (cache.rest.service_key)")

    if missing:
        raise ConfigError(
            "Missing cache credentials",
            details="Set " + " and ".join(missing),
        )


def validate_app_config_file(path: Path | str) -> list[str]:
    """Validate an app configuration file without loading.

    Args:
        path: Path to app YAML file

    Returns:
        List of validation error messages (empty if valid)
    """
    path = Path(path)
    errors: list[str] = []

    if not path.exists():
        errors.append(f"File not found: {path}")
        return errors

    try:
        data = _load_yaml_file(path)
    except ConfigError as e:
        errors.append(str(e))
        return errors

    try:
        AppConfig.model_validate(_expand_env_vars(data))
    except ValidationError as e:
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            msg = error["msg"]
            errors.append(f"{loc}: {msg}")

    return errors
