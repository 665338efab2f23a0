"""Foundation utilities for orgdiff.

Provides reusable primitives for logging setup, timing and safe path joins.
As a foundation module this package must not import any other orgdiff
packages.
"""

from __future__ import annotations

from contextlib import contextmanager
import json
import logging
from pathlib import Path, PurePosixPath
import time
from typing import Iterator, Union

__all__ = [
    "configure_logging",
    "JsonFormatter",
    "time_block",
    "safe_join",
]

logger = logging.getLogger(__name__)


# ============================================================================
# Timing Utilities
# ============================================================================


@contextmanager
def time_block(label: str, log: logging.Logger | None = None, level: int = logging.DEBUG) -> Iterator[None]:
    """Context manager for timing code blocks.

    Args:
        label: Descriptive label for timed block
        log: Logger to report to (default: this module's logger)
        level: Log level for the timing message

    Example:
        with time_block("sf org list metadata"):
            await runner.run(args)
        # Logs: "sf org list metadata completed in 1.23s"
    """
    start_time = time.monotonic()

    try:
        yield
    finally:
        elapsed = time.monotonic() - start_time
        (log or logger).log(level, f"{label} completed in {elapsed:.2f}s")


# ============================================================================
# Path Safety
# ============================================================================


def safe_join(base: Union[str, Path], relative: Union[str, Path]) -> Path:
    """Join a relative member path under a base directory.

    Rejects absolute paths and any path that escapes ``base`` after
    resolution. Accepts POSIX separators regardless of platform.

    Args:
        base: Directory the result must stay inside
        relative: Relative path (e.g. "lwc/foo/foo.js")

    Returns:
        Resolved path inside base

    Raises:
        ValueError: If relative is empty, absolute or escapes base
    """
    relative_str = str(relative).strip()
    if not relative_str:
        raise ValueError("Relative path must not be empty")

    posix = PurePosixPath(relative_str.replace("\\", "/"))
    if posix.is_absolute() or ".." in posix.parts:
        raise ValueError(f"Unsafe relative path: {relative_str}")

    base_path = Path(base).resolve()
    candidate = base_path.joinpath(*posix.parts).resolve()

    try:
        candidate.relative_to(base_path)
    except ValueError:
        raise ValueError(f"Path escapes base directory: {relative_str}")

    return candidate


# ============================================================================
# Logging Configuration
# ============================================================================


class JsonFormatter(logging.Formatter):
    """One JSON object per record; message text is escaped, not interpolated."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(level: str = "INFO", structured: bool = False) -> None:
    """Point the root logger at stderr, as plain text or JSON lines.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        structured: Enable JSON structured logging (default: False)

    Raises:
        ValueError: If level is not a known logging level
    """
    numeric_level = getattr(logging, level.upper(), None)

    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # repeated calls replace the handler rather than stacking another
    root_logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setLevel(numeric_level)

    formatter: logging.Formatter
    if structured:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
