"""Unified diff rendering."""

from __future__ import annotations

import difflib

NO_NEWLINE_MARKER = "\\ No newline at end of file\n"


def split_lines(text: str, keepends: bool = False) -> list[str]:
    """Split text into lines on ``\\n`` only.

    Unlike ``str.splitlines``, characters such as ``\\r``, form feed or
    U+2028 stay inside their line, matching how editors number lines in
    source files.

    Args:
        text: Text to split
        keepends: Keep the ``\\n`` terminator on each line

    Returns:
        The lines; an empty list for empty text
    """
    lines = text.split("\n")
    terminated = lines[-1] == ""
    if terminated:
        lines.pop()
    if not keepends:
        return lines

    with_ends = [line + "\n" for line in lines]
    if with_ends and not terminated:
        with_ends[-1] = lines[-1]
    return with_ends


def create_patch(
    file_name: str,
    before: str,
    after: str,
    before_label: str = "before",
    after_label: str = "after",
    context_lines: int = 3,
) -> str:
    """Render a unified diff between two versions of one file.

    Args:
        file_name: Name used in both header lines
        before: Old content
        after: New content
        before_label: Tag appended to the '---' header
        after_label: Tag appended to the '+++' header
        context_lines: Unchanged lines shown around each hunk

    Returns:
        Unified diff text; empty string if the contents are equal
    """
    diff_lines = difflib.unified_diff(
        split_lines(before, keepends=True),
        split_lines(after, keepends=True),
        fromfile=file_name,
        tofile=file_name,
        fromfiledate=before_label,
        tofiledate=after_label,
        n=context_lines,
    )

    parts: list[str] = []
    for line in diff_lines:
        if line.endswith("\n"):
            parts.append(line)
        else:
            # Last line of a side without a trailing newline
            parts.append(line + "\n")
            parts.append(NO_NEWLINE_MARKER)
    return "".join(parts)
