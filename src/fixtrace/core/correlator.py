"""Pairing captured diffs with the errors they fixed."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from fixtrace.config.schema import CorrelationConfig
from fixtrace.core.context import extract_code_context
from fixtrace.core.events import EventEmitter, Unsubscribe
from fixtrace.models.analysis import FixRecord
from fixtrace.models.error import CapturedError, ErrorSeverity, ErrorSource
from fixtrace.utils.logging import LogEventNames

if TYPE_CHECKING:
    from fixtrace.core.error_detector import ErrorDetector
    from fixtrace.core.fix_tracker import FixTracker
    from fixtrace.interfaces.workspace import Workspace
    from fixtrace.models.diff import CapturedDiff

log = structlog.get_logger()


class FixCorrelator:
    """Links each CapturedDiff back to the CapturedError it resolves.

    The latest error reported on the diff's file wins; when the file never
    reported one, the latest error overall is used. With ``auto_track``
    enabled, every resolvable error also starts a tracking session on its
    file (dropped by the tracker if another session is in progress).
    """

    def __init__(
        self,
        detector: ErrorDetector,
        tracker: FixTracker,
        config: CorrelationConfig | None = None,
    ) -> None:
        self._detector = detector
        self._tracker = tracker
        self._config = config or CorrelationConfig()
        self._last_error: CapturedError | None = None
        self._errors_by_file: dict[str, CapturedError] = {}
        self._subscriptions: list[Unsubscribe] = []

        self.on_fix_captured: EventEmitter[FixRecord] = EventEmitter("fix_captured")

    @property
    def last_error(self) -> CapturedError | None:
        """Return the most recent error seen."""
        return self._last_error

    def attach(self) -> None:
        """Subscribe to the detector's errors and the tracker's diffs."""
        self._subscriptions.append(self._detector.on_error_detected.subscribe(self.record_error))
        self._subscriptions.append(self._tracker.on_diff_captured.subscribe(self.record_diff))

    def detach(self) -> None:
        """Unsubscribe from both sources."""
        for unsubscribe in self._subscriptions:
            unsubscribe()
        self._subscriptions.clear()

    def record_error(self, error: CapturedError) -> None:
        """Remember an error for later pairing."""
        self._last_error = error
        if not error.degraded:
            self._errors_by_file[error.file] = error
            if self._config.auto_track:
                self._tracker.start_tracking(error.file)

    def record_diff(self, diff: CapturedDiff) -> FixRecord:
        """Pair a diff with its error and emit the FixRecord."""
        error = self._errors_by_file.pop(diff.file, None)
        if error is None:
            error = self._last_error

        record = FixRecord(diff=diff, error=error)
        log.info(
            LogEventNames.FIX_CORRELATED,
            file=diff.file,
            error=record.original_error,
            paired=error is not None,
        )
        self.on_fix_captured.fire(record)
        return record


def capture_first_error(
    workspace: Workspace,
    path: str,
    context_lines: int = 10,
) -> CapturedError | None:
    """Build a CapturedError from the first error diagnostic of an open file.

    This is the explicit "explain this error" path: it bypasses
    deduplication and does not fire any event.

    Returns:
        The error, or None if the file is not open or has no errors
    """
    document = workspace.get_open_document(path)
    if document is None:
        return None

    errors = [d for d in workspace.get_diagnostics(path) if d.is_error]
    if not errors:
        return None

    first = errors[0]
    line = first.start_line + 1
    context = extract_code_context(document.text, line, context_lines, file_path=path)
    return CapturedError(
        message=first.message,
        file=document.path,
        line=line,
        language=document.language_id,
        code_context=context.content,
        severity=ErrorSeverity.ERROR,
        source=ErrorSource.DIAGNOSTICS,
    )
