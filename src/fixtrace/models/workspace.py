"""Data models for what the editor host reports about its buffers."""

from dataclasses import dataclass
from enum import StrEnum


class DiagnosticSeverity(StrEnum):
    """Diagnostic severities as reported by language servers."""

    ERROR = "error"
    WARNING = "warning"
    INFORMATION = "information"
    HINT = "hint"


@dataclass(frozen=True)
class Diagnostic:
    """A single compiler/linter diagnostic."""

    message: str
    start_line: int  # 0-indexed, as language servers report it
    severity: DiagnosticSeverity = DiagnosticSeverity.ERROR
    column: int = 0
    source: str | None = None  # e.g., "ts", "eslint"

    @property
    def is_error(self) -> bool:
        """True for error severity."""
        return self.severity == DiagnosticSeverity.ERROR


@dataclass(frozen=True)
class TextDocument:
    """Snapshot of a document's full text at one point in time."""

    path: str
    text: str
    language_id: str = "plaintext"
    version: int = 0


@dataclass(frozen=True)
class DocumentChange:
    """A content mutation on an open document."""

    document: TextDocument
    change_count: int = 1  # number of edits in the batch
