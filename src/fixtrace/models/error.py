"""Data models for captured errors."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum


class ErrorSeverity(StrEnum):
    """Severity of a captured error."""

    ERROR = "error"
    WARNING = "warning"


class ErrorSource(StrEnum):
    """Channel an error was detected on."""

    DIAGNOSTICS = "diagnostics"
    TERMINAL = "terminal"


@dataclass(frozen=True)
class CapturedError:
    """A single error signal, normalized and deduplicated."""

    message: str
    file: str
    line: int  # 1-indexed
    language: str
    code_context: str  # +/- N lines around `line`, empty when degraded
    severity: ErrorSeverity = ErrorSeverity.ERROR
    source: ErrorSource = ErrorSource.DIAGNOSTICS
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    degraded: bool = False  # file could not be resolved

    @property
    def key(self) -> tuple[str, int, str]:
        """Deduplication key: (file, line, message)."""
        return (self.file, self.line, self.message)

    @property
    def location(self) -> str:
        """Human readable 'file:line'."""
        return f"{self.file}:{self.line}"


@dataclass(frozen=True)
class OutputErrorMatch:
    """An error recognized in unstructured process output."""

    error_type: str  # e.g., "TypeError"
    message: str  # e.g., "Cannot read properties of undefined"
    file: str | None = None
    line: int | None = None
    column: int | None = None

    @property
    def full_message(self) -> str:
        """Message in 'Type: message' form."""
        return f"{self.error_type}: {self.message}"

    @property
    def has_location(self) -> bool:
        """True if a file reference was found alongside the error."""
        return self.file is not None
