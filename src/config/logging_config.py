# src/config/logging_config.py

"""Per-run logging for the storefront engine.

Every launch writes ``logs/run_<YYYYmmdd_HHMMSS>.log`` at DEBUG and
keeps only the newest ``Settings.LOG_RETENTION`` run files.  The
console (stderr) shows WARNING and above by default, which is where
degraded mode and dropped cache entries surface; ``STOREFRONT_LOG_LEVEL``
overrides that threshold.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | "
    "%(funcName)s:%(lineno)d | %(message)s"
)
_CONSOLE_FORMAT = "%(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Transport libraries log every request at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "curl_cffi")


def _prune_old_runs(logs_dir: Path, keep: int) -> int:
    """Delete all but the newest *keep* run logs; return how many went."""
    runs = sorted(logs_dir.glob("run_*.log"), reverse=True)
    stale = runs[keep:]
    for path in stale:
        path.unlink(missing_ok=True)
    return len(stale)


def _console_level() -> int:
    level = logging.getLevelName(Settings.LOG_LEVEL.upper())
    return level if isinstance(level, int) else logging.WARNING


def setup_logging(logs_dir: Path | None = None) -> Path:
    """Attach the run file and console handlers to ``storefront``.

    Idempotent: a second call returns a fresh path but adds no handlers.
    """
    logs_dir = logs_dir or Settings.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / f"run_{datetime.now():%Y%m%d_%H%M%S}.log"

    app_logger = logging.getLogger("storefront")
    app_logger.setLevel(logging.DEBUG)
    if app_logger.handlers:
        return log_file

    pruned = _prune_old_runs(logs_dir, Settings.LOG_RETENTION - 1)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT)
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(_console_level())
    console_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))

    app_logger.addHandler(file_handler)
    app_logger.addHandler(console_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    app_logger.debug(
        "Run log %s opened (%d old run logs pruned)", log_file, pruned
    )
    return log_file
