"""Parser for errors in unstructured build/run output.

This module implements the ProcessOutputParser class that recognizes error
lines in terminal or debug-console output. It supports:
- Generic ``<Something>Error: message`` lines (JavaScript, TypeScript, Python)
- Node's ``Uncaught TypeError: ...`` prefix
- Node/V8 stack frames: ``at fn (src/App.tsx:10:5)``
- Python frames: ``File "app/main.py", line 12, in main``
- Bare ``src/App.tsx:10:5`` locations printed by bundlers

Parsing is pure: text in, optional OutputErrorMatch out. Resolving the file
against the workspace is the detector's job.
"""

from __future__ import annotations

import re

from fixtrace.models.error import OutputErrorMatch

ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")


class ProcessOutputParser:
    """Parser for error signals in process output.

    Example:
        parser = ProcessOutputParser()
        match = parser.parse("TypeError: x is undefined\\n    at f (src/a.js:3:7)")
        if match:
            print(match.full_message, match.file, match.line)
    """

    ERROR_PATTERN = re.compile(
        r"(?:Uncaught\s+)?(?P<type>\w*Error):\s*(?P<msg>.+?)(?:\r?\n|\r|$)",
        re.MULTILINE,
    )
    JS_FRAME_PATTERN = re.compile(
        r"at\s+.*?[(/](?P<file>[^\s:()]+):(?P<line>\d+):(?P<col>\d+)",
    )
    PYTHON_FRAME_PATTERN = re.compile(
        r'File "(?P<file>[^"]+)", line (?P<line>\d+)',
    )
    LOCATION_PATTERN = re.compile(
        r"(?P<file>[\w.@~\\/-]*\w\.\w+):(?P<line>\d+):(?P<col>\d+)",
    )

    def contains_error(self, text: str) -> bool:
        """Check if text contains an error line.

        Args:
            text: Output chunk to check

        Returns:
            True if an error line is present
        """
        if not text:
            return False
        return self.ERROR_PATTERN.search(self.strip_ansi(text)) is not None

    def parse(self, text: str) -> OutputErrorMatch | None:
        """Extract the first error and its best file reference from text.

        Args:
            text: Output chunk, possibly containing colour codes

        Returns:
            OutputErrorMatch, or None if no error line is present
        """
        if not text:
            return None

        clean = self.strip_ansi(text)
        error_match = self.ERROR_PATTERN.search(clean)
        if not error_match:
            return None

        file, line, column = self._find_location(clean)
        return OutputErrorMatch(
            error_type=error_match.group("type"),
            message=error_match.group("msg").strip(),
            file=file,
            line=line,
            column=column,
        )

    @staticmethod
    def strip_ansi(text: str) -> str:
        """Remove terminal colour/cursor escape sequences."""
        return ANSI_ESCAPE.sub("", text)

    def _find_location(self, text: str) -> tuple[str | None, int | None, int | None]:
        """Find the file reference that most likely raised the error.

        JS frames are listed innermost first; Python frames innermost last.
        """
        js_frame = self.JS_FRAME_PATTERN.search(text)
        if js_frame:
            return (js_frame.group("file"), int(js_frame.group("line")), int(js_frame.group("col")))

        py_frames = list(self.PYTHON_FRAME_PATTERN.finditer(text))
        if py_frames:
            last = py_frames[-1]
            return (last.group("file"), int(last.group("line")), None)

        location = self.LOCATION_PATTERN.search(text)
        if location:
            return (location.group("file"), int(location.group("line")), int(location.group("col")))

        return (None, None, None)


_default_parser = ProcessOutputParser()


def parse_process_output(text: str) -> OutputErrorMatch | None:
    """Parse one output chunk with a shared parser instance."""
    return _default_parser.parse(text)
