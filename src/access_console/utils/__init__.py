"""Shared utility helpers for the access console."""

from .logging import (
    LoggingOptions,
    configure_logging,
    get_logger,
    level_from_name,
    log_file_path,
)

__all__ = [
    "LoggingOptions",
    "configure_logging",
    "get_logger",
    "level_from_name",
    "log_file_path",
]
