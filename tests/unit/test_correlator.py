"""Tests for FixCorrelator and capture_first_error."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from fixtrace.config.schema import CorrelationConfig, DetectorConfig, TrackerConfig
from fixtrace.core.correlator import FixCorrelator, capture_first_error
from fixtrace.core.error_detector import ErrorDetector
from fixtrace.core.fix_tracker import FixTracker
from fixtrace.models.analysis import FixRecord
from fixtrace.models.diff import CapturedDiff
from fixtrace.models.error import CapturedError
from fixtrace.models.workspace import Diagnostic, DiagnosticSeverity

if TYPE_CHECKING:
    from conftest import FakeWorkspace


def make_error(file: str, message: str = "boom", degraded: bool = False) -> CapturedError:
    """Build a minimal CapturedError."""
    return CapturedError(
        message=message,
        file=file,
        line=1,
        language="typescript",
        code_context="" if degraded else "x",
        degraded=degraded,
    )


def make_diff(file: str) -> CapturedDiff:
    """Build a minimal CapturedDiff."""
    return CapturedDiff(
        file=file,
        language="typescript",
        before_content="a\n",
        after_content="b\n",
        unified_diff=f"--- {file}\n+++ {file}\n@@ -1 +1 @@\n-a\n+b\n",
    )


@pytest.fixture
def detector(workspace: FakeWorkspace, detector_config: DetectorConfig) -> ErrorDetector:
    """Create a detector attached to the workspace signals."""
    detector = ErrorDetector(workspace, detector_config)
    detector.attach(workspace.signals)
    return detector


@pytest.fixture
def tracker(workspace: FakeWorkspace, fast_tracker_config: TrackerConfig) -> FixTracker:
    """Create a tracker attached to the workspace signals."""
    tracker = FixTracker(workspace, fast_tracker_config)
    tracker.attach(workspace.signals)
    return tracker


@pytest.fixture
def records(detector: ErrorDetector, tracker: FixTracker) -> list[FixRecord]:
    """Attach a default correlator and collect its records."""
    correlator = FixCorrelator(detector, tracker)
    correlator.attach()
    captured: list[FixRecord] = []
    correlator.on_fix_captured.subscribe(captured.append)
    return captured


class TestFixRecord:
    """Tests for the FixRecord model."""

    def test_placeholder_without_error(self) -> None:
        """Test that an unpaired record reports the placeholder message."""
        record = FixRecord(diff=make_diff("/a.ts"))

        assert record.original_error == "unknown error"

    def test_diff_request(self) -> None:
        """Test that the diff request carries the paired error message."""
        diff = make_diff("/a.ts")
        record = FixRecord(diff=diff, error=make_error("/a.ts", "Cannot find name 'x'."))

        request = record.to_diff_request()

        assert request.language == "typescript"
        assert request.filename == "/a.ts"
        assert request.original_error == "Cannot find name 'x'."
        assert request.diff == diff.unified_diff


class TestRecordDiff:
    """Tests for pairing diffs with errors."""

    def test_pairs_with_error_on_same_file(
        self,
        detector: ErrorDetector,
        tracker: FixTracker,
    ) -> None:
        """Test that the diff's own file error wins over a newer one elsewhere."""
        correlator = FixCorrelator(detector, tracker)
        own = make_error("/a.ts", "own")
        correlator.record_error(own)
        correlator.record_error(make_error("/b.ts", "other"))

        record = correlator.record_diff(make_diff("/a.ts"))

        assert record.error == own

    def test_falls_back_to_last_error(
        self,
        detector: ErrorDetector,
        tracker: FixTracker,
    ) -> None:
        """Test that a file without its own error pairs with the latest error."""
        correlator = FixCorrelator(detector, tracker)
        latest = make_error("unknown", "TypeError: boom", degraded=True)
        correlator.record_error(latest)

        record = correlator.record_diff(make_diff("/a.ts"))

        assert record.error == latest
        assert correlator.last_error == latest

    def test_file_error_used_once(
        self,
        detector: ErrorDetector,
        tracker: FixTracker,
    ) -> None:
        """Test that a per-file error pairs with one diff only."""
        correlator = FixCorrelator(detector, tracker)
        correlator.record_error(make_error("/b.ts", "b"))
        correlator.record_error(make_error("/a.ts", "a"))

        first = correlator.record_diff(make_diff("/b.ts"))
        second = correlator.record_diff(make_diff("/b.ts"))

        assert first.original_error == "b"
        assert second.original_error == "a"

    def test_no_error_seen(self, detector: ErrorDetector, tracker: FixTracker) -> None:
        """Test that a diff with nothing to pair still produces a record."""
        correlator = FixCorrelator(detector, tracker)

        record = correlator.record_diff(make_diff("/a.ts"))

        assert record.error is None
        assert record.original_error == FixRecord.UNKNOWN_ERROR


class TestAutoTrack:
    """Tests for automatic tracking on detection."""

    async def test_error_starts_tracking(
        self,
        workspace: FakeWorkspace,
        detector: ErrorDetector,
        tracker: FixTracker,
        app_path: str,
        sample_source: str,
    ) -> None:
        """Test that a detected error starts a session on its file."""
        FixCorrelator(detector, tracker, CorrelationConfig(auto_track=True)).attach()
        workspace.open(app_path, sample_source)

        workspace.set_errors(app_path, 4)

        assert tracker.tracked_file == app_path
        assert tracker.baseline == sample_source

    async def test_degraded_error_does_not_track(
        self,
        detector: ErrorDetector,
        tracker: FixTracker,
    ) -> None:
        """Test that errors without a resolved file are never tracked."""
        FixCorrelator(detector, tracker, CorrelationConfig(auto_track=True)).attach()

        await detector.handle_process_output("TypeError: boom")

        assert tracker.tracked_file is None

    async def test_disabled_by_default(
        self,
        workspace: FakeWorkspace,
        tracker: FixTracker,
        records: list[FixRecord],
        app_path: str,
        sample_source: str,
    ) -> None:
        """Test that without auto_track detection does not start tracking."""
        workspace.open(app_path, sample_source)
        workspace.set_errors(app_path, 4)

        assert tracker.tracked_file is None
        assert records == []

    async def test_end_to_end_fix(
        self,
        workspace: FakeWorkspace,
        detector: ErrorDetector,
        tracker: FixTracker,
        app_path: str,
        sample_source: str,
    ) -> None:
        """Test error detection, tracking and the fix being paired."""
        correlator = FixCorrelator(detector, tracker, CorrelationConfig(auto_track=True))
        correlator.attach()
        records: list[FixRecord] = []
        correlator.on_fix_captured.subscribe(records.append)

        workspace.open(app_path, sample_source)
        workspace.set_errors(app_path, 4, message="Cannot find name 'itemz'.")
        workspace.edit(app_path, sample_source.replace("itemz", "items"))
        workspace.save(app_path)

        assert len(records) == 1
        assert records[0].original_error == "Cannot find name 'itemz'."
        assert records[0].diff.before_content == sample_source
        assert tracker.tracked_file is None

    async def test_detach_stops_pairing(
        self,
        workspace: FakeWorkspace,
        detector: ErrorDetector,
        tracker: FixTracker,
        app_path: str,
    ) -> None:
        """Test that a detached correlator emits nothing."""
        correlator = FixCorrelator(detector, tracker)
        correlator.attach()
        records: list[FixRecord] = []
        correlator.on_fix_captured.subscribe(records.append)
        correlator.detach()

        workspace.open(app_path, "a\n")
        tracker.start_tracking(app_path)
        workspace.edit(app_path, "b\n")
        workspace.save(app_path)

        assert records == []


class TestCaptureFirstError:
    """Tests for capture_first_error."""

    def test_first_error_diagnostic(
        self,
        workspace: FakeWorkspace,
        app_path: str,
        sample_source: str,
    ) -> None:
        """Test that the first error-severity diagnostic is used."""
        workspace.open(app_path, sample_source)
        workspace.diagnostics[app_path] = [
            Diagnostic(message="hint", start_line=0, severity=DiagnosticSeverity.HINT),
            Diagnostic(message="Cannot find name 'itemz'.", start_line=3),
            Diagnostic(message="later", start_line=4),
        ]

        error = capture_first_error(workspace, app_path, context_lines=1)

        assert error is not None
        assert error.message == "Cannot find name 'itemz'."
        assert error.line == 4
        assert error.code_context.splitlines() == sample_source.splitlines()[2:5]

    def test_no_errors(self, workspace: FakeWorkspace, app_path: str, sample_source: str) -> None:
        """Test that a clean file yields None."""
        workspace.open(app_path, sample_source)

        assert capture_first_error(workspace, app_path) is None

    def test_file_not_open(self, workspace: FakeWorkspace, app_path: str) -> None:
        """Test that a closed file yields None."""
        workspace.diagnostics[app_path] = [Diagnostic(message="x", start_line=0)]

        assert capture_first_error(workspace, app_path) is None
