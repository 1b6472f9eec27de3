"""
Progress document persistence.

The whole ProgressState is rewritten at every checkpoint. Writes go to a
temporary file in the same directory, are fsynced, then renamed over the
previous document, so a crash leaves either the old or the new version.
"""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from pathlib import Path

import orjson
from pydantic import ValidationError

from .models import ProgressState

logger = logging.getLogger(__name__)


class ProgressStore:
    """Loads and checkpoints the progress document."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.checkpoints = 0
        self.checkpoint_errors = 0

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> ProgressState:
        """Load progress, or start fresh.

        A missing file is a fresh start. An unreadable or invalid file is
        logged and also treated as a fresh start, so every URL is retried.
        """
        if not self.path.exists():
            logger.info(f"No progress file at {self.path}, starting fresh")
            return ProgressState()

        try:
            raw = self.path.read_bytes()
            data = orjson.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("progress document is not a JSON object")
            state = ProgressState.model_validate(data)
        except (OSError, ValueError, ValidationError) as e:
            # orjson.JSONDecodeError is a ValueError
            logger.warning(f"Ignoring unreadable progress file {self.path}: {e}")
            return ProgressState()

        logger.info(
            f"Loaded progress: {sum(len(v) for v in state.completed.values())} completed, "
            f"{sum(len(v) for v in state.failed.values())} failed"
        )
        return state

    def checkpoint(self, state: ProgressState) -> bool:
        """Atomically write the full progress document.

        Returns:
            True if written; False if the write failed (logged, not raised)
        """
        state.touch()
        payload = orjson.dumps(
            state.model_dump(mode="json"),
            option=orjson.OPT_INDENT_2,
        )

        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            self.checkpoint_errors += 1
            logger.error(f"Failed to write progress checkpoint {self.path}: {e}")
            return False
        finally:
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)

        self.checkpoints += 1
        return True

    def reset(self) -> bool:
        """Delete the progress document. Returns whether a file was removed."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        return True
