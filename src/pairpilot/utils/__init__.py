"""Shared helpers for filesystem access and logging."""

from .file_io import read_text, write_text
from .logging import configure_from_settings, get_log_path, get_logger, setup_logging

__all__ = ["read_text", "write_text", "setup_logging", "configure_from_settings", "get_logger", "get_log_path"]
