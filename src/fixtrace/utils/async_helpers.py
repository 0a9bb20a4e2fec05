"""Async utilities for the event-driven core.

This module provides:
- Custom exceptions for error handling
- Timeout wrappers for async reads
- Cancelable debounce timers built on the running event loop
- A tracked set of background tasks whose failures are logged, not raised

Everything here runs on a single event loop; nothing is thread-safe.
"""

from __future__ import annotations

import asyncio
import builtins
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any, TypeVar

import structlog

log = structlog.get_logger()

T = TypeVar("T")


# =============================================================================
# Custom Exceptions
# =============================================================================


class FixTraceError(Exception):
    """Base exception for all fixtrace errors."""


class DocumentOpenError(FixTraceError):
    """A document could not be opened from disk."""


class SnapshotError(FixTraceError):
    """A baseline or current snapshot could not be read."""


class TimeoutError(FixTraceError):
    """Operation timed out."""


# =============================================================================
# Timeout Utilities
# =============================================================================


async def with_timeout(
    coro: Awaitable[T],
    timeout: float,
    error_message: str | None = None,
) -> T:
    """Execute an awaitable with a timeout.

    Args:
        coro: The coroutine to execute.
        timeout: Timeout in seconds.
        error_message: Custom error message for timeout.

    Returns:
        The result of the coroutine.

    Raises:
        TimeoutError: If the operation times out.
    """
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except builtins.TimeoutError as e:
        msg = error_message or f"Operation timed out after {timeout}s"
        log.warning("operation_timeout", timeout=timeout)
        raise TimeoutError(msg) from e


# =============================================================================
# Debounce Timer
# =============================================================================


class DebounceTimer:
    """A single cancelable delayed call.

    Scheduling again replaces the pending call, so a burst of
    ``schedule()`` calls results in exactly one invocation: the last one.

    Example:
        timer = DebounceTimer("content_settle")
        timer.schedule(1.5, on_settled, path)
        timer.schedule(1.5, on_settled, path)  # first call never runs
        timer.cancel()
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        """Return True if a call is scheduled and has not run yet."""
        return self._handle is not None

    def schedule(self, delay: float, callback: Callable[..., None], *args: Any) -> None:
        """Schedule ``callback(*args)`` after ``delay`` seconds, replacing any pending call.

        Must be called while an event loop is running.
        """
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(delay, self._fire, callback, args)

    def cancel(self) -> bool:
        """Cancel the pending call.

        Returns:
            True if a pending call was cancelled, False if nothing was scheduled.
        """
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    def _fire(self, callback: Callable[..., None], args: tuple[Any, ...]) -> None:
        # Clear first so the callback observes "not pending"
        self._handle = None
        try:
            callback(*args)
        except Exception:
            log.exception("timer_callback_failed", timer=self.name)


# =============================================================================
# Background Tasks
# =============================================================================


class BackgroundTasks:
    """Holds references to fire-and-forget tasks spawned by signal handlers.

    A task that raises is logged from its done-callback and dropped, so a
    failure in one handler never reaches the event source or other handlers.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._tasks: set[asyncio.Task[Any]] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, T], name: str | None = None) -> asyncio.Task[T]:
        """Schedule a coroutine on the running loop and keep a reference to it."""
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.error(
                "background_task_failed",
                group=self.name,
                task=task.get_name(),
                exception_type=type(exc).__name__,
                exception_message=str(exc),
            )

    async def wait(self, timeout: float | None = None) -> None:
        """Wait until every task (including ones spawned meanwhile) has finished.

        Tasks still running after ``timeout`` seconds are cancelled.
        """
        while True:
            pending = {task for task in self._tasks if not task.done()}
            if not pending:
                return
            _, still_running = await asyncio.wait(pending, timeout=timeout)
            if still_running:
                log.warning("cancelling_background_tasks", group=self.name, count=len(still_running))
                for task in still_running:
                    task.cancel()
                await asyncio.gather(*still_running, return_exceptions=True)
                return
