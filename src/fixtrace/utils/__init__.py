"""Utility functions and helpers.

This module provides various utilities for fixtrace:
- async_helpers: Exceptions, timeouts, debounce timers, background tasks
- logging: Structured logging configuration
"""

from fixtrace.utils.async_helpers import (
    BackgroundTasks,
    DebounceTimer,
    DocumentOpenError,
    FixTraceError,
    SnapshotError,
    TimeoutError,
    with_timeout,
)
from fixtrace.utils.logging import (
    LogEventNames,
    LogFormat,
    LogLevel,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)

__all__ = [
    # Async helpers
    "BackgroundTasks",
    "DebounceTimer",
    "DocumentOpenError",
    "FixTraceError",
    "SnapshotError",
    "TimeoutError",
    "with_timeout",
    # Logging
    "LogEventNames",
    "LogFormat",
    "LogLevel",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "unbind_context",
]
