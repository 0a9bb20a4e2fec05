"""Data models for captured fixes."""

from dataclasses import dataclass, field
from datetime import UTC, datetime


@dataclass(frozen=True)
class CapturedDiff:
    """Before/after content of a tracked file once a fix has landed."""

    file: str
    language: str
    before_content: str
    after_content: str
    unified_diff: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def added_lines(self) -> int:
        """Number of '+' lines in the unified diff, headers excluded."""
        return sum(
            1
            for line in self.unified_diff.split("\n")
            if line.startswith("+") and not line.startswith("+++")
        )

    @property
    def removed_lines(self) -> int:
        """Number of '-' lines in the unified diff, headers excluded."""
        return sum(
            1
            for line in self.unified_diff.split("\n")
            if line.startswith("-") and not line.startswith("---")
        )
