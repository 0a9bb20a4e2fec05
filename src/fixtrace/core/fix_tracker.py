"""Fix tracking for a single file.

This module implements the FixTracker class, which watches one file after an
error was reported on it and captures the before/after diff of the fix.
Three independent signals can complete a session:

1. Save pair: pre-save captures a baseline if none exists, post-save diffs
   immediately (a save is a settled action).
2. Diagnostics cleared: the error count reaches zero, or drops below the
   count recorded at tracking start; the diff runs after a short settle delay.
3. Content changed: any edit (re)arms a longer settle delay, covering tools
   that edit the buffer without saving while diagnostics lag behind.

Whichever path completes first emits the diff and returns the tracker to
idle. Later paths find no baseline and do nothing, so one session produces
at most one CapturedDiff. No particular signal is preferred over another.
"""

from __future__ import annotations

import itertools
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

import structlog

from fixtrace.config.schema import TrackerConfig
from fixtrace.core.diff import create_patch
from fixtrace.core.events import EventEmitter, Unsubscribe, WorkspaceSignals
from fixtrace.models.diff import CapturedDiff
from fixtrace.utils.async_helpers import (
    BackgroundTasks,
    DebounceTimer,
    FixTraceError,
    SnapshotError,
    with_timeout,
)
from fixtrace.utils.logging import LogEventNames

if TYPE_CHECKING:
    from fixtrace.interfaces.workspace import Workspace
    from fixtrace.models.workspace import DocumentChange, TextDocument

log = structlog.get_logger()


class TrackerState(StrEnum):
    """Lifecycle state of a FixTracker."""

    IDLE = "idle"
    TRACKING = "tracking"


@dataclass
class TrackingSession:
    """All mutable per-session state. Owned and mutated only by FixTracker."""

    tracked_file: str | None = None
    baselines: dict[str, str] = field(default_factory=dict)
    active: bool = False
    initial_error_count: int | None = None
    generation: int = 0
    diagnostics_timer: DebounceTimer = field(
        default_factory=lambda: DebounceTimer("diagnostics_settle")
    )
    content_timer: DebounceTimer = field(default_factory=lambda: DebounceTimer("content_settle"))

    @property
    def state(self) -> TrackerState:
        """Current lifecycle state."""
        return TrackerState.TRACKING if self.active else TrackerState.IDLE

    @property
    def has_pending_timer(self) -> bool:
        """True if either settle delay is armed."""
        return self.diagnostics_timer.pending or self.content_timer.pending

    def is_tracking(self, path: str) -> bool:
        """True if ``path`` is the actively tracked file."""
        return self.active and self.tracked_file == path

    def cancel_timers(self) -> None:
        """Cancel both settle delays."""
        self.diagnostics_timer.cancel()
        self.content_timer.cancel()

    def reset(self) -> None:
        """Return to idle: drop every baseline and cancel every timer."""
        self.cancel_timers()
        self.baselines.clear()
        self.tracked_file = None
        self.initial_error_count = None
        self.active = False


class FixTracker:
    """Captures exactly one diff per tracking session.

    Example:
        tracker = FixTracker(workspace)
        tracker.on_diff_captured.subscribe(handle_diff)
        tracker.attach(signals)
        tracker.start_tracking("/repo/src/App.tsx")
    """

    def __init__(self, workspace: Workspace, config: TrackerConfig | None = None) -> None:
        """Initialize the FixTracker.

        Args:
            workspace: Host view used to read buffers and diagnostics
            config: Settle delays and read timeout (defaults if None)
        """
        self._workspace = workspace
        self._config = config or TrackerConfig()
        self._session = TrackingSession()
        self._generations = itertools.count(1)
        self._tasks = BackgroundTasks("fix_tracker")
        self._subscriptions: list[Unsubscribe] = []

        self.on_diff_captured: EventEmitter[CapturedDiff] = EventEmitter("diff_captured")

        self._sessions_started = 0
        self._requests_dropped = 0
        self._diffs_emitted = 0
        self._read_failures = 0

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> TrackerState:
        """Return the current lifecycle state."""
        return self._session.state

    @property
    def tracked_file(self) -> str | None:
        """Return the tracked file, or None when idle."""
        return self._session.tracked_file

    @property
    def has_baseline(self) -> bool:
        """Return True if the tracked file has a baseline snapshot."""
        path = self._session.tracked_file
        return path is not None and path in self._session.baselines

    @property
    def baseline(self) -> str | None:
        """Return the tracked file's baseline text, if captured."""
        path = self._session.tracked_file
        return self._session.baselines.get(path) if path is not None else None

    @property
    def initial_error_count(self) -> int | None:
        """Return the error count recorded when tracking started."""
        return self._session.initial_error_count

    @property
    def has_pending_timer(self) -> bool:
        """Return True if a settle delay is armed."""
        return self._session.has_pending_timer

    @property
    def stats(self) -> dict[str, int]:
        """Return tracking statistics."""
        return {
            "sessions_started": self._sessions_started,
            "tracking_requests_dropped": self._requests_dropped,
            "diffs_emitted": self._diffs_emitted,
            "read_failures": self._read_failures,
        }

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def attach(self, signals: WorkspaceSignals) -> None:
        """Subscribe to the save, diagnostics and content channels."""
        self._subscriptions.extend(
            [
                signals.will_save.subscribe(self.on_will_save),
                signals.did_save.subscribe(self.on_did_save),
                signals.diagnostics_changed.subscribe(self.on_diagnostics_changed),
                signals.document_changed.subscribe(self.on_document_changed),
            ]
        )

    def detach(self) -> None:
        """Unsubscribe from all channels."""
        for unsubscribe in self._subscriptions:
            unsubscribe()
        self._subscriptions.clear()

    async def wait_pending(self, timeout: float | None = None) -> None:
        """Wait for in-flight snapshot reads and diff computations."""
        await self._tasks.wait(timeout)

    async def dispose(self, timeout: float | None = None) -> None:
        """Stop tracking, detach and wait for in-flight reads."""
        self.stop_tracking()
        self.detach()
        await self._tasks.wait(timeout)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start_tracking(self, path: str) -> bool:
        """Begin (or re-enter) a tracking session on ``path``.

        The request is dropped while a different file is being tracked. Settle
        delays are only armed inside an active session, so a pending fix
        detection on the tracked file also wins over a start for another file.

        Returns:
            True if the session is now tracking ``path``, False if dropped
        """
        session = self._session
        if session.active and session.tracked_file != path:
            self._drop_request(path, reason="tracking_other_file")
            return False

        if not session.active:
            session.generation = next(self._generations)
            self._sessions_started += 1
        session.active = True
        session.tracked_file = path
        session.initial_error_count = self._count_errors(path)

        document = self._workspace.get_open_document(path)
        if document is not None:
            self._capture_baseline(document, reason="start")
        else:
            self._tasks.spawn(
                self._load_baseline(path, session.generation),
                name=f"load_baseline:{path}",
            )

        log.info(
            LogEventNames.TRACKING_STARTED,
            file=path,
            initial_error_count=session.initial_error_count,
            session=session.generation,
        )
        return True

    def stop_tracking(self) -> None:
        """Return to idle. Safe to call in any state."""
        was_active = self._session.active
        self._session.reset()
        if was_active:
            log.info(LogEventNames.TRACKING_STOPPED)

    # ------------------------------------------------------------------
    # Fix signal 1: save pair
    # ------------------------------------------------------------------

    def on_will_save(self, document: TextDocument) -> None:
        """Capture a baseline just before the tracked file is saved, if none exists."""
        if self._session.is_tracking(document.path):
            self._capture_baseline(document, reason="will_save")

    def on_did_save(self, document: TextDocument) -> CapturedDiff | None:
        """Diff the tracked file right after it was saved."""
        if not self._session.is_tracking(document.path):
            return None
        return self._compute_diff(document)

    # ------------------------------------------------------------------
    # Fix signal 2: diagnostics cleared
    # ------------------------------------------------------------------

    def on_diagnostics_changed(self, paths: Iterable[str]) -> None:
        """Arm the short settle delay when the tracked file's errors clear or drop."""
        session = self._session
        path = session.tracked_file
        if not session.active or path is None or path not in list(paths):
            return

        error_count = self._count_errors(path)
        initial = session.initial_error_count
        log.debug(
            "tracked_file_diagnostics",
            file=path,
            error_count=error_count,
            initial_error_count=initial,
        )

        if error_count == 0 or (initial is not None and error_count < initial):
            # Supersedes the slower content-change fallback
            session.content_timer.cancel()
            session.diagnostics_timer.schedule(
                self._config.diagnostics_settle_delay,
                self._on_settled,
                path,
                session.generation,
                "diagnostics",
            )
            log.debug(
                LogEventNames.SETTLE_SCHEDULED,
                file=path,
                trigger="diagnostics",
                delay=self._config.diagnostics_settle_delay,
            )

    # ------------------------------------------------------------------
    # Fix signal 3: raw content change
    # ------------------------------------------------------------------

    def on_document_changed(self, change: DocumentChange) -> None:
        """(Re)arm the long settle delay on every edit to the tracked file."""
        session = self._session
        if not session.is_tracking(change.document.path) or change.change_count == 0:
            return

        session.content_timer.schedule(
            self._config.content_settle_delay,
            self._on_settled,
            change.document.path,
            session.generation,
            "content",
        )
        log.debug(
            LogEventNames.SETTLE_SCHEDULED,
            file=change.document.path,
            trigger="content",
            delay=self._config.content_settle_delay,
        )

    # ------------------------------------------------------------------
    # Shared exit path
    # ------------------------------------------------------------------

    def _on_settled(self, path: str, generation: int, trigger: str) -> None:
        if not self._owns(path, generation):
            return
        log.debug(LogEventNames.SETTLE_FIRED, file=path, trigger=trigger)
        self._tasks.spawn(
            self._compute_diff_for_tracked_file(path, generation),
            name=f"compute_diff:{trigger}",
        )

    async def _compute_diff_for_tracked_file(self, path: str, generation: int) -> CapturedDiff | None:
        try:
            document = await self._read_document(path)
        except SnapshotError as e:
            self._read_failures += 1
            log.warning(LogEventNames.SNAPSHOT_READ_FAILED, file=path, purpose="diff", error=str(e))
            return None

        # The session may have resolved or restarted while the read was pending
        if not self._owns(path, generation):
            return None
        return self._compute_diff(document)

    def _compute_diff(self, document: TextDocument) -> CapturedDiff | None:
        """Emit the diff if the document changed since its baseline.

        An unchanged document leaves the baseline in place for a later fix.
        """
        path = document.path
        before = self._session.baselines.get(path)
        if before is None:
            log.debug(LogEventNames.DIFF_SKIPPED_NO_BASELINE, file=path)
            return None

        after = document.text
        if before == after:
            log.debug(LogEventNames.DIFF_SKIPPED_UNCHANGED, file=path)
            return None

        diff = CapturedDiff(
            file=path,
            language=document.language_id,
            before_content=before,
            after_content=after,
            unified_diff=create_patch(path, before, after),
        )

        # Idle before emitting so listeners may start a new session
        self._session.reset()
        self._diffs_emitted += 1
        log.info(
            LogEventNames.DIFF_CAPTURED,
            file=path,
            added_lines=diff.added_lines,
            removed_lines=diff.removed_lines,
        )
        self.on_diff_captured.fire(diff)
        return diff

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _owns(self, path: str, generation: int) -> bool:
        return self._session.is_tracking(path) and self._session.generation == generation

    def _drop_request(self, path: str, reason: str) -> None:
        self._requests_dropped += 1
        log.info(
            LogEventNames.TRACKING_REQUEST_DROPPED,
            file=path,
            tracked_file=self._session.tracked_file,
            reason=reason,
        )

    def _count_errors(self, path: str) -> int:
        return sum(1 for d in self._workspace.get_diagnostics(path) if d.is_error)

    def _capture_baseline(self, document: TextDocument, reason: str) -> None:
        # First snapshot wins for the lifetime of the session
        if document.path in self._session.baselines:
            return
        self._session.baselines[document.path] = document.text
        log.debug(LogEventNames.BASELINE_CAPTURED, file=document.path, reason=reason)

    async def _load_baseline(self, path: str, generation: int) -> None:
        try:
            document = await self._read_document(path)
        except SnapshotError as e:
            self._read_failures += 1
            log.warning(LogEventNames.SNAPSHOT_READ_FAILED, file=path, purpose="baseline", error=str(e))
            return

        if not self._owns(path, generation):
            log.debug(LogEventNames.BASELINE_STALE, file=path)
            return
        self._capture_baseline(document, reason="opened")

    async def _read_document(self, path: str) -> TextDocument:
        """Return the live buffer, opening the file from disk if needed.

        Raises:
            SnapshotError: If the file cannot be read
        """
        document = self._workspace.get_open_document(path)
        if document is not None:
            return document
        try:
            return await with_timeout(
                self._workspace.open_document(path),
                self._config.snapshot_timeout,
            )
        except (OSError, FixTraceError) as e:
            raise SnapshotError(f"Failed to read {path}: {e}") from e
