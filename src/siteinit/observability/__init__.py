"""Logging setup."""

from .logger import (
    TRACE,
    VERBOSE,
    LogContext,
    add_context,
    clear_all_context,
    clear_context,
    configure_logging,
    get_log_level,
)

__all__ = [
    "TRACE",
    "VERBOSE",
    "LogContext",
    "add_context",
    "clear_context",
    "clear_all_context",
    "configure_logging",
    "get_log_level",
]
