"""Code context extraction around an error line."""

from __future__ import annotations

from fixtrace.core.diff import split_lines
from fixtrace.models.analysis import CodeContext

DEFAULT_CONTEXT_LINES = 10


def extract_code_context(
    text: str,
    line_number: int,
    context_lines: int = DEFAULT_CONTEXT_LINES,
    file_path: str = "",
) -> CodeContext:
    """Slice the lines surrounding a 1-indexed line out of a document.

    The window is clipped to the document, so a line near the top or bottom
    yields fewer lines; a line past the end yields the document's tail.
    Lines break on ``\\n`` only; a ``\\r`` right before it is dropped.

    Args:
        text: Full document text
        line_number: Line to center the window on (1-indexed)
        context_lines: Number of lines before/after
        file_path: Path recorded on the result

    Returns:
        CodeContext; content is empty for an empty document
    """
    lines = [line.removesuffix("\r") for line in split_lines(text)]
    if not lines:
        return CodeContext(file_path=file_path, start_line=0, end_line=0, content="")

    total_lines = len(lines)
    anchor = min(max(1, line_number), total_lines)
    start_line = max(1, anchor - context_lines)
    end_line = min(total_lines, anchor + context_lines)

    return CodeContext(
        file_path=file_path,
        start_line=start_line,
        end_line=end_line,
        content="\n".join(lines[start_line - 1 : end_line]),
        highlight_line=line_number if start_line <= line_number <= end_line else None,
    )
