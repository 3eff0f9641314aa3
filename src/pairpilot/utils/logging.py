"""Logging configuration for PairPilot.

Log records go to a size-rotated file under ``~/.pairpilot/logs`` (or
``PAIRPILOT_LOG_DIR``) and, optionally, to stderr. Modules log through
``logging.getLogger(__name__)``; nothing here is needed to emit records.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..services.settings import Settings

__all__ = ["LOG_FORMAT", "LOG_FILE_NAME", "setup_logging", "configure_from_settings", "get_logger", "get_log_path"]

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "pairpilot.log"
LOG_DIR_ENV = "PAIRPILOT_LOG_DIR"

_FALLBACK_LOG_DIR = Path.home() / ".pairpilot" / "logs"
# Third-party loggers capped at WARNING unless the root is stricter.
_CHATTY_LIBRARIES: tuple[str, ...] = ("asyncio", "httpx", "openai")

_active_log_path: Path | None = None


def setup_logging(
    level: int = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    console: bool = True,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
    force: bool = False,
) -> Path:
    """Install the file (and console) handlers on the root logger.

    Calling again is a no-op returning the current log file unless ``force``
    is set, in which case the previous handlers are replaced.
    """

    global _active_log_path
    if _active_log_path is not None and not force:
        return _active_log_path

    directory = _log_directory(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    log_path = directory / LOG_FILE_NAME

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    handlers = [_rotating_file_handler(log_path, formatter, level, max_bytes, backup_count)]
    if console:
        handlers.append(_console_handler(formatter, level))

    logging.basicConfig(level=level, handlers=handlers, force=True)
    logging.captureWarnings(True)
    for name in _CHATTY_LIBRARIES:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    _active_log_path = log_path
    logging.getLogger(__name__).debug("Logging to %s", log_path)
    return log_path


def configure_from_settings(settings: "Settings", *, console: bool = True) -> Path:
    """Apply the logging preferences stored in ``settings``."""

    level = logging.DEBUG if settings.debug_logging else logging.INFO
    return setup_logging(level, log_dir=settings.log_dir, console=console, force=True)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def get_log_path() -> Path | None:
    """The file currently receiving log records, if logging was set up."""
    return _active_log_path


def _log_directory(log_dir: Path | str | None) -> Path:
    chosen = log_dir or os.environ.get(LOG_DIR_ENV) or _FALLBACK_LOG_DIR
    return Path(chosen).expanduser()


def _rotating_file_handler(
    path: Path,
    formatter: logging.Formatter,
    level: int,
    max_bytes: int,
    backup_count: int,
) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _console_handler(formatter: logging.Formatter, level: int) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler
