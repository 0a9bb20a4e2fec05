"""Composition root that wires detection, tracking and correlation.

This module implements the FixWatcher class that serves as the main entry
point for a host integration. It:
- Builds the ErrorDetector, FixTracker and FixCorrelator from configuration
- Attaches them to the host's WorkspaceSignals
- Detaches, cancels timers and drains in-flight reads on stop

Each watcher owns all of its state; any number of them can coexist (one per
workspace, one per test).
"""

from __future__ import annotations

from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING

import structlog

from fixtrace.config.loader import load_config
from fixtrace.config.schema import FixTraceConfig
from fixtrace.core.correlator import FixCorrelator, capture_first_error
from fixtrace.core.error_detector import ErrorDetector
from fixtrace.core.fix_tracker import FixTracker
from fixtrace.utils.logging import LogEventNames, configure_logging

if TYPE_CHECKING:
    from fixtrace.core.events import WorkspaceSignals
    from fixtrace.interfaces.workspace import Workspace
    from fixtrace.models.error import CapturedError

log = structlog.get_logger()


class FixWatcher:
    """Watches an editing session and reports (error, fix) pairs.

    Example:
        async with FixWatcher(config, workspace, signals) as watcher:
            watcher.correlator.on_fix_captured.subscribe(explain_fix)
            watcher.detector.on_error_detected.subscribe(show_error)
            ...
    """

    def __init__(
        self,
        config: FixTraceConfig,
        workspace: Workspace,
        signals: WorkspaceSignals,
    ) -> None:
        """Initialize the FixWatcher.

        Args:
            config: Application configuration
            workspace: Host view of buffers and diagnostics
            signals: Host notification channels
        """
        self._config = config
        self._workspace = workspace
        self._signals = signals

        self.detector = ErrorDetector(workspace, config.detector)
        self.tracker = FixTracker(workspace, config.tracker)
        self.correlator = FixCorrelator(self.detector, self.tracker, config.correlation)

        self._running = False

    @property
    def is_running(self) -> bool:
        """Return True if the watcher is attached to its signals."""
        return self._running

    @property
    def stats(self) -> dict[str, int]:
        """Return combined detection and tracking statistics."""
        return {**self.detector.stats, **self.tracker.stats}

    def start(self) -> None:
        """Attach every component to the workspace signals."""
        if self._running:
            log.warning("watcher_already_running")
            return

        # Correlator first so it sees each error before auto-tracking reacts
        self.correlator.attach()
        self.detector.attach(self._signals)
        self.tracker.attach(self._signals)
        self._running = True
        log.info(
            LogEventNames.WATCHER_STARTED,
            roots=[str(root) for root in self._workspace.roots],
            auto_track=self._config.correlation.auto_track,
        )

    async def stop(self) -> None:
        """Detach, stop tracking and wait for in-flight reads."""
        if not self._running:
            log.warning("watcher_not_running")
            return

        timeout = self._config.runtime.shutdown_timeout
        self.correlator.detach()
        await self.tracker.dispose(timeout)
        await self.detector.dispose(timeout)
        self._running = False
        log.info(LogEventNames.WATCHER_STOPPED, **self.stats)

    def start_tracking(self, path: str) -> bool:
        """Begin tracking a file; see FixTracker.start_tracking."""
        return self.tracker.start_tracking(path)

    def stop_tracking(self) -> None:
        """Stop the current tracking session, if any."""
        self.tracker.stop_tracking()

    def explain_first_error(self, path: str) -> CapturedError | None:
        """Capture the first current error of an open file and start tracking it."""
        error = capture_first_error(self._workspace, path, self._config.detector.context_lines)
        if error is not None:
            self.correlator.record_error(error)
            self.tracker.start_tracking(error.file)
        return error

    async def __aenter__(self) -> FixWatcher:
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.stop()


def create_watcher(
    workspace: Workspace,
    signals: WorkspaceSignals,
    config_path: Path | None = None,
    setup_logging: bool = True,
) -> FixWatcher:
    """Factory function to create a FixWatcher from a config file.

    Args:
        workspace: Host view of buffers and diagnostics
        signals: Host notification channels
        config_path: YAML config file; defaults plus environment when None
        setup_logging: Apply the config's logging section to the process

    Returns:
        Configured, not yet started FixWatcher
    """
    log.info("loading_configuration", path=str(config_path) if config_path else None)
    config = load_config(config_path)

    if setup_logging:
        configure_logging(
            level=config.logging.level,
            log_format=config.logging.format,
            file_path=config.logging.file.path if config.logging.file.enabled else None,
            file_enabled=config.logging.file.enabled,
        )

    return FixWatcher(config, workspace, signals)
