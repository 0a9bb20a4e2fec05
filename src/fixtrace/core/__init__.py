"""Core error-to-fix correlation engine.

This module exports the main components:
- ErrorDetector: Turns diagnostics and process output into CapturedError events
- FixTracker: Tracks one file and captures the diff of its fix
- FixCorrelator: Pairs captured diffs with the errors they resolve
- FixWatcher: Wires all of the above to a host's workspace signals
- ProcessOutputParser: Recognizes errors in unstructured output
"""

from fixtrace.core.correlator import FixCorrelator, capture_first_error
from fixtrace.core.error_detector import ErrorDetector, RecentErrorCache
from fixtrace.core.events import EventEmitter, WorkspaceSignals
from fixtrace.core.fix_tracker import FixTracker, TrackerState, TrackingSession
from fixtrace.core.output_parser import ProcessOutputParser, parse_process_output
from fixtrace.core.watcher import FixWatcher, create_watcher

__all__ = [
    "ErrorDetector",
    "EventEmitter",
    "FixCorrelator",
    "FixTracker",
    "FixWatcher",
    "ProcessOutputParser",
    "RecentErrorCache",
    "TrackerState",
    "TrackingSession",
    "WorkspaceSignals",
    "capture_first_error",
    "create_watcher",
    "parse_process_output",
]
