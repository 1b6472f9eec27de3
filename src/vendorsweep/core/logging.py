"""
Logging infrastructure for vendorsweep.

Two sinks hang off the ``vendorsweep`` logger:
- the terminal, rendered with Rich and prefixed with the vendor domain
- an optional JSON-lines file, one object per record, for post-run analysis

Sweep code logs through ContextualLogger so every line about a URL
carries its vendor and run id.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import orjson
from rich.markup import escape

if TYPE_CHECKING:
    from rich.console import Console


ROOT_LOGGER = "vendorsweep"
PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Record attributes copied into JSON log lines when present
CONTEXT_FIELDS = ("vendor", "run_id", "url", "quality", "batch")


def json_dumps(obj: Any) -> str:
    return orjson.dumps(obj, default=str).decode("utf-8")


# =============================================================================
# Formatters and Handlers
# =============================================================================


class JSONFormatter(logging.Formatter):
    """One JSON object per record, including any sweep context fields."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, getattr(record, key)) for key in CONTEXT_FIELDS if hasattr(record, key)
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json_dumps(entry)


class RichConsoleHandler(logging.Handler):
    """Colour by level, prefix with ``[vendor]`` when the record has one."""

    STYLES = {
        logging.DEBUG: "dim",
        logging.INFO: "default",
        logging.WARNING: "yellow",
        logging.ERROR: "red",
        logging.CRITICAL: "bold red",
    }

    def __init__(self, console: "Console | None" = None, level: int = logging.INFO):
        super().__init__(level)
        if console is None:
            from rich.console import Console
            console = Console(stderr=True)
        self.console = console

    def emit(self, record: logging.LogRecord) -> None:
        try:
            style = self.STYLES.get(record.levelno, "default")
            vendor = getattr(record, "vendor", None)
            prefix = f"[cyan]\\[{escape(vendor)}][/cyan] " if vendor else ""

            # URLs may contain brackets
            self.console.print(f"{prefix}[{style}]{escape(self.format(record))}[/{style}]")
            if record.exc_info:
                self.console.print_exception()
        except Exception:
            self.handleError(record)


# =============================================================================
# Setup
# =============================================================================


def setup_logging(
    level: str = "INFO",
    log_file: Path | str | None = None,
    json_format: bool = True,
    rich_console: bool = True,
) -> logging.Logger:
    """Attach console and file handlers to the vendorsweep logger.

    Calling it again replaces the previous handlers.

    Args:
        level: Console log level name
        log_file: JSON-lines (or plain text) log file; the file always
            receives DEBUG and above
        json_format: Write the file as JSON lines
        rich_console: Render the console with Rich instead of plain stderr

    Returns:
        The vendorsweep logger
    """
    numeric_level = getattr(logging, level.upper())
    root = logging.getLogger(ROOT_LOGGER)
    root.handlers.clear()

    if rich_console:
        console: logging.Handler = RichConsoleHandler(level=numeric_level)
        console.setFormatter(logging.Formatter("%(message)s"))
    else:
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(numeric_level)
        console.setFormatter(logging.Formatter(PLAIN_FORMAT))
    root.addHandler(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            JSONFormatter() if json_format
            else logging.Formatter(PLAIN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )
        root.addHandler(file_handler)

    # The file sink wants DEBUG even when the console is quieter
    root.setLevel(logging.DEBUG if log_file else numeric_level)
    return root


def get_logger(name: str | None = None) -> logging.Logger:
    """Logger under the ``vendorsweep.`` namespace."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)


# =============================================================================
# Contextual Logging
# =============================================================================


class ContextualLogger(logging.LoggerAdapter):
    """Adds ``vendor`` and ``run_id`` to every record it emits."""

    def __init__(
        self,
        logger: logging.Logger,
        vendor: str | None = None,
        run_id: str | None = None,
    ):
        super().__init__(logger, {})
        self.vendor = vendor
        self.run_id = run_id

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        if self.vendor:
            extra["vendor"] = self.vendor
        if self.run_id:
            extra["run_id"] = self.run_id
        kwargs["extra"] = extra
        return msg, kwargs

    def with_context(
        self,
        vendor: str | None = None,
        run_id: str | None = None,
    ) -> "ContextualLogger":
        return ContextualLogger(
            self.logger,
            vendor=vendor or self.vendor,
            run_id=run_id or self.run_id,
        )


def get_contextual_logger(
    name: str | None = None,
    vendor: str | None = None,
    run_id: str | None = None,
) -> ContextualLogger:
    """Get a contextual logger bound to a vendor and/or run."""
    return ContextualLogger(get_logger(name), vendor=vendor, run_id=run_id)
