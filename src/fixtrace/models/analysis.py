"""Data models handed to the external analysis service."""

from dataclasses import dataclass

from .diff import CapturedDiff
from .error import CapturedError


@dataclass(frozen=True)
class CodeContext:
    """Code snippet with surrounding context."""

    file_path: str
    start_line: int
    end_line: int
    content: str
    highlight_line: int | None = None  # Line to emphasize (error location)

    @property
    def line_count(self) -> int:
        """Number of lines in this code context."""
        if not self.content:
            return 0
        return self.end_line - self.start_line + 1


@dataclass(frozen=True)
class ErrorAnalysisRequest:
    """Request to explain a captured error."""

    language: str
    filename: str
    error_message: str
    code_context: str

    @classmethod
    def from_error(cls, error: CapturedError) -> "ErrorAnalysisRequest":
        """Build a request from a captured error."""
        return cls(
            language=error.language,
            filename=error.file,
            error_message=error.message,
            code_context=error.code_context,
        )


@dataclass(frozen=True)
class DiffAnalysisRequest:
    """Request to explain how a diff fixed an error."""

    language: str
    filename: str
    original_error: str
    diff: str


@dataclass(frozen=True)
class FixRecord:
    """A captured diff paired with the error it most likely fixed."""

    diff: CapturedDiff
    error: CapturedError | None = None

    UNKNOWN_ERROR = "unknown error"

    @property
    def original_error(self) -> str:
        """Message of the paired error, or a placeholder."""
        return self.error.message if self.error else self.UNKNOWN_ERROR

    def to_diff_request(self) -> DiffAnalysisRequest:
        """Build the diff-explanation request for this fix."""
        return DiffAnalysisRequest(
            language=self.diff.language,
            filename=self.diff.file,
            original_error=self.original_error,
            diff=self.diff.unified_diff,
        )
