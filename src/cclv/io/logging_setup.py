"""Logging bootstrap for the cclv viewer.

// [LAW:single-enforcer] Handler wiring happens in this module only.
// [LAW:one-source-of-truth] The log file path and level are resolved here and returned to callers.

While the TUI owns the terminal there is no stderr handler; everything goes
to the rotating log file.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path

ROOT_LOGGER = "cclv"
MAX_LOG_BYTES = 20 * 1024 * 1024
BACKUP_COUNT = 5


@dataclass(frozen=True)
class LoggingRuntime:
    level_name: str
    level: int
    file_path: str
    console: bool


_RUNTIME: LoggingRuntime | None = None


def _parse_level(raw: str | None) -> tuple[str, int]:
    normalized = str(raw or "INFO").strip().upper()
    level = getattr(logging, normalized, None)
    if not isinstance(level, int):
        level = logging.INFO
    return str(logging.getLevelName(level)), level


def _safe_name(value: str) -> str:
    candidate = "".join(ch if (ch.isalnum() or ch in {"-", "_"}) else "-" for ch in value)
    return candidate.strip("-_") or "cclv"


def _default_log_path(name: str) -> str:
    log_dir = Path(os.environ.get("CCLV_LOG_DIR", os.path.expanduser("~/.local/share/cclv/logs")))
    ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    return str(log_dir / f"{_safe_name(name)}-{ts}-{os.getpid()}.log")


def _make_stream_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("[%(name)s] %(levelname)s %(message)s"))
    # records flagged cclv_file_only never reach the terminal
    handler.addFilter(lambda record: not bool(getattr(record, "cclv_file_only", False)))
    return handler


def _make_file_handler(level: int, file_path: str) -> logging.Handler:
    handler = RotatingFileHandler(
        file_path,
        maxBytes=MAX_LOG_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    return handler


def configure(name: str = "viewer", *, level: str | None = None, console: bool = False) -> LoggingRuntime:
    """Wire the `cclv` logger to a rotating file (and optionally stderr).

    `level` overrides CCLV_LOG_LEVEL. Idempotent: later calls return the
    runtime from the first call.
    """
    global _RUNTIME
    if _RUNTIME is not None:
        return _RUNTIME

    level_name, level_value = _parse_level(level or os.environ.get("CCLV_LOG_LEVEL"))
    file_path = os.environ.get("CCLV_LOG_FILE") or _default_log_path(name)
    Path(file_path).parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level_value)
    logger.propagate = False
    logger.handlers.clear()
    if console:
        logger.addHandler(_make_stream_handler(level_value))
    logger.addHandler(_make_file_handler(level_value, file_path))

    # third-party libraries (textual, watchfiles) only surface warnings
    root = logging.getLogger()
    if root.level > logging.WARNING:
        root.setLevel(logging.WARNING)
    logging.getLogger("watchfiles").setLevel(logging.WARNING)

    logging.captureWarnings(True)

    _RUNTIME = LoggingRuntime(
        level_name=level_name, level=level_value, file_path=file_path, console=console
    )
    logger.debug("logging configured: level=%s file=%s", level_name, file_path)
    return _RUNTIME


def get_runtime() -> LoggingRuntime | None:
    return _RUNTIME
