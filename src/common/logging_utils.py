"""Process-wide logging setup.

Usage:

  from common.logging_utils import get_logger
  logger = get_logger(__name__)
  logger.info("match recorded")

The first call configures the root logger (stderr console + rotating file under
`logs/rankguard.log`). Later calls only hand out named loggers.

Environment:

  RANKGUARD_LOG_LEVEL  level name or number (default INFO)
  RANKGUARD_LOG_DIR    directory for the rotating file (default <repo>/logs)
  RANKGUARD_LOG_FILE   set to 0/false/no to skip the file handler
"""

from __future__ import annotations

import logging
import os
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final


_CONFIG_LOCK: Final[threading.Lock] = threading.Lock()
_CONFIGURED: bool = False
_FORMAT: Final[str] = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"


def _project_root() -> Path:
    here = Path(__file__).resolve()
    for parent in here.parents:
        if (parent / "pyproject.toml").exists():
            return parent
    # src/common/logging_utils.py -> repo root is 2 levels up.
    return here.parents[2]


def _parse_level(level: str | None) -> int:
    text = (level or "").strip()
    if not text:
        return logging.INFO
    if text.isdigit():
        return int(text)
    return getattr(logging, text.upper(), logging.INFO)


def _file_logging_enabled() -> bool:
    return os.getenv("RANKGUARD_LOG_FILE", "1").strip().lower() not in {"0", "false", "no", "off"}


def _log_dir() -> Path:
    override = os.getenv("RANKGUARD_LOG_DIR", "").strip()
    return Path(override) if override else _project_root() / "logs"


def _configure_once() -> None:
    global _CONFIGURED
    if _CONFIGURED:
        return

    with _CONFIG_LOCK:
        if _CONFIGURED:
            return

        level = _parse_level(os.getenv("RANKGUARD_LOG_LEVEL", "INFO"))
        root = logging.getLogger()
        root.setLevel(level)
        fmt = logging.Formatter(_FORMAT)

        # stdout is reserved for CLI output.
        has_console = any(
            isinstance(h, logging.StreamHandler)
            and not isinstance(h, logging.FileHandler)
            and getattr(h, "stream", None) is sys.stderr
            for h in root.handlers
        )
        if not has_console:
            console = logging.StreamHandler(stream=sys.stderr)
            console.setLevel(level)
            console.setFormatter(fmt)
            root.addHandler(console)

        if _file_logging_enabled():
            logs_dir = _log_dir()
            logs_dir.mkdir(parents=True, exist_ok=True)
            logfile = str(logs_dir / "rankguard.log")
            has_same_file = any(
                isinstance(h, RotatingFileHandler) and getattr(h, "baseFilename", None) == logfile
                for h in root.handlers
            )
            if not has_same_file:
                file_handler = RotatingFileHandler(
                    logfile,
                    maxBytes=2 * 1024 * 1024,
                    backupCount=3,
                    encoding="utf-8",
                    delay=True,
                )
                file_handler.setLevel(level)
                file_handler.setFormatter(fmt)
                root.addHandler(file_handler)

        _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return a named logger, configuring the process on first use."""

    _configure_once()
    return logging.getLogger(name)
