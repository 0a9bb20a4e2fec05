"""Error-to-fix correlation for live editing sessions."""

from fixtrace.core import ErrorDetector, FixCorrelator, FixTracker, FixWatcher, WorkspaceSignals
from fixtrace.models import CapturedDiff, CapturedError, FixRecord

__all__ = [
    "CapturedDiff",
    "CapturedError",
    "ErrorDetector",
    "FixCorrelator",
    "FixRecord",
    "FixTracker",
    "FixWatcher",
    "WorkspaceSignals",
]
