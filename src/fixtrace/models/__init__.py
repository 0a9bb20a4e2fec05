"""Data models and transfer objects."""

from .analysis import CodeContext, DiffAnalysisRequest, ErrorAnalysisRequest, FixRecord
from .diff import CapturedDiff
from .error import CapturedError, ErrorSeverity, ErrorSource, OutputErrorMatch
from .workspace import Diagnostic, DiagnosticSeverity, DocumentChange, TextDocument

__all__ = [
    # Error models
    "CapturedError",
    "ErrorSeverity",
    "ErrorSource",
    "OutputErrorMatch",
    # Diff models
    "CapturedDiff",
    # Workspace models
    "Diagnostic",
    "DiagnosticSeverity",
    "DocumentChange",
    "TextDocument",
    # Analysis models
    "CodeContext",
    "ErrorAnalysisRequest",
    "DiffAnalysisRequest",
    "FixRecord",
]
