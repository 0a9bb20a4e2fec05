"""Tests for data models."""

from dataclasses import FrozenInstanceError

import pytest

from fixtrace.models.analysis import CodeContext, ErrorAnalysisRequest
from fixtrace.models.error import CapturedError, ErrorSeverity, ErrorSource, OutputErrorMatch
from fixtrace.models.workspace import Diagnostic, DiagnosticSeverity


@pytest.fixture
def error() -> CapturedError:
    """Return a sample captured error."""
    return CapturedError(
        message="Cannot find name 'itemz'.",
        file="/repo/src/App.tsx",
        line=4,
        language="typescriptreact",
        code_context="  const total = itemz.length;",
    )


class TestCapturedError:
    """Test CapturedError dataclass."""

    def test_defaults(self, error: CapturedError) -> None:
        """Test default severity, source and degraded flag."""
        assert error.severity == ErrorSeverity.ERROR
        assert error.source == ErrorSource.DIAGNOSTICS
        assert error.degraded is False
        assert error.timestamp.tzinfo is not None

    def test_key(self, error: CapturedError) -> None:
        """Test the dedup key is (file, line, message)."""
        assert error.key == ("/repo/src/App.tsx", 4, "Cannot find name 'itemz'.")

    def test_location(self, error: CapturedError) -> None:
        """Test the file:line rendering."""
        assert error.location == "/repo/src/App.tsx:4"

    def test_frozen(self, error: CapturedError) -> None:
        """Test that captured errors are immutable."""
        with pytest.raises(FrozenInstanceError):
            error.line = 5  # type: ignore[misc]

    def test_key_ignores_timestamp(self, error: CapturedError) -> None:
        """Test that two captures of the same error share a key."""
        again = CapturedError(
            message=error.message,
            file=error.file,
            line=error.line,
            language=error.language,
            code_context="",
            source=ErrorSource.TERMINAL,
        )
        assert again.key == error.key


class TestOutputErrorMatch:
    """Test OutputErrorMatch dataclass."""

    def test_full_message(self) -> None:
        """Test the 'Type: message' rendering."""
        match = OutputErrorMatch(error_type="TypeError", message="x is undefined")
        assert match.full_message == "TypeError: x is undefined"
        assert match.has_location is False

    def test_has_location(self) -> None:
        """Test has_location with a file reference."""
        match = OutputErrorMatch(error_type="Error", message="boom", file="a.js", line=3)
        assert match.has_location is True


class TestDiagnostic:
    """Test Diagnostic dataclass."""

    def test_is_error(self) -> None:
        """Test that only error severity counts as an error."""
        assert Diagnostic(message="x", start_line=0).is_error is True
        for severity in (
            DiagnosticSeverity.WARNING,
            DiagnosticSeverity.INFORMATION,
            DiagnosticSeverity.HINT,
        ):
            assert Diagnostic(message="x", start_line=0, severity=severity).is_error is False


class TestAnalysisModels:
    """Test analysis request models."""

    def test_error_request_from_error(self, error: CapturedError) -> None:
        """Test building an explanation request from a captured error."""
        request = ErrorAnalysisRequest.from_error(error)

        assert request.language == "typescriptreact"
        assert request.filename == "/repo/src/App.tsx"
        assert request.error_message == "Cannot find name 'itemz'."
        assert request.code_context == "  const total = itemz.length;"

    def test_code_context_line_count(self) -> None:
        """Test line_count for empty and non-empty snippets."""
        assert CodeContext("a.ts", 3, 7, "x\n" * 5).line_count == 5
        assert CodeContext("a.ts", 0, 0, "").line_count == 0
