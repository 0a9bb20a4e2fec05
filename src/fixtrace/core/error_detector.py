"""Error detection from diagnostics and process output.

This module implements the ErrorDetector class, which turns two independent
channels into one deduplicated stream of CapturedError events:
- Diagnostic changes: error-severity diagnostics of open, supported files
- Process output: error lines in build/run output, resolved to a workspace
  file when possible and emitted degraded (no context) when not

Both channels share a rolling (file, line, message) cache so the same error
is not reported twice within the dedup window.
"""

from __future__ import annotations

import asyncio
import math
import time
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from cachetools import TTLCache

from fixtrace.config.schema import DetectorConfig
from fixtrace.core.context import extract_code_context
from fixtrace.core.events import EventEmitter, Unsubscribe, WorkspaceSignals
from fixtrace.core.output_parser import ProcessOutputParser
from fixtrace.models.error import CapturedError, ErrorSeverity, ErrorSource, OutputErrorMatch
from fixtrace.utils.async_helpers import (
    BackgroundTasks,
    FixTraceError,
    with_timeout,
)
from fixtrace.utils.logging import LogEventNames

if TYPE_CHECKING:
    from fixtrace.interfaces.workspace import Workspace
    from fixtrace.models.workspace import TextDocument

log = structlog.get_logger()

ErrorKey = tuple[str, int, str]


class RecentErrorCache:
    """Remembers which (file, line, message) keys fired recently.

    Entries expire ``window`` seconds after they were recorded; expired
    entries are pruned on every lookup, so no background timer is needed.
    The cache is unbounded: a key is only forgotten once its window ends.
    """

    def __init__(
        self,
        window: float = 2.0,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            window: Seconds during which a repeated key counts as duplicate
            timer: Clock used for expiry (injectable for tests)
        """
        self._window = window
        self._timer = timer
        self._entries: TTLCache[ErrorKey, float] = TTLCache(
            maxsize=math.inf,
            ttl=window,
            timer=timer,
        )

    @property
    def window(self) -> float:
        """Return the dedup window in seconds."""
        return self._window

    def __len__(self) -> int:
        self._entries.expire()
        return len(self._entries)

    def is_duplicate(self, key: ErrorKey) -> bool:
        """Return True if ``key`` was recorded within the window."""
        self._entries.expire()
        return key in self._entries

    def record(self, key: ErrorKey) -> None:
        """Record ``key`` as fired now."""
        self._entries[key] = self._timer()

    def check_and_record(self, key: ErrorKey) -> bool:
        """Record ``key`` unless it is a duplicate.

        Returns:
            True if the key is new and was recorded, False if suppressed
        """
        if self.is_duplicate(key):
            return False
        self.record(key)
        return True

    def clear(self) -> None:
        """Forget every key."""
        self._entries.clear()


class ErrorDetector:
    """Produces deduplicated CapturedError events.

    Responsibilities:
    - Read error diagnostics for open, supported-language files
    - Recognize errors in process output and resolve their file references
    - Slice a context window around each error line
    - Suppress repeats within the dedup window

    Example:
        detector = ErrorDetector(workspace)
        detector.on_error_detected.subscribe(handle_error)
        detector.attach(signals)
    """

    def __init__(
        self,
        workspace: Workspace,
        config: DetectorConfig | None = None,
        parser: ProcessOutputParser | None = None,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the ErrorDetector.

        Args:
            workspace: Host view used to read diagnostics and documents
            config: Detection settings (defaults if None)
            parser: Output parser (a fresh one if None)
            timer: Clock for the dedup cache
        """
        self._workspace = workspace
        self._config = config or DetectorConfig()
        self._parser = parser or ProcessOutputParser()
        self._recent = RecentErrorCache(
            window=self._config.dedup_window,
            timer=timer,
        )
        self._tasks = BackgroundTasks("error_detector")
        self._output_lock = asyncio.Lock()
        self._subscriptions: list[Unsubscribe] = []

        self.on_error_detected: EventEmitter[CapturedError] = EventEmitter("error_detected")

        self._detected = 0
        self._duplicates = 0
        self._degraded = 0

    @property
    def stats(self) -> dict[str, int]:
        """Return detection statistics."""
        return {
            "errors_detected": self._detected,
            "duplicates_suppressed": self._duplicates,
            "degraded_errors": self._degraded,
        }

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def attach(self, signals: WorkspaceSignals) -> None:
        """Subscribe to the diagnostics and process-output channels."""
        self._subscriptions.append(
            signals.diagnostics_changed.subscribe(self.on_diagnostics_changed)
        )
        self._subscriptions.append(signals.process_output.subscribe(self.on_process_output))

    def detach(self) -> None:
        """Unsubscribe from all channels."""
        for unsubscribe in self._subscriptions:
            unsubscribe()
        self._subscriptions.clear()

    async def wait_pending(self, timeout: float | None = None) -> None:
        """Wait for in-flight process-output resolutions to finish."""
        await self._tasks.wait(timeout)

    async def dispose(self, timeout: float | None = None) -> None:
        """Detach and wait for in-flight work."""
        self.detach()
        await self._tasks.wait(timeout)

    # ------------------------------------------------------------------
    # Diagnostics channel
    # ------------------------------------------------------------------

    def on_diagnostics_changed(self, paths: Iterable[str]) -> list[CapturedError]:
        """Handle a diagnostics-changed notification.

        Files that are not open or not in a supported language are skipped.

        Args:
            paths: Files whose diagnostics changed

        Returns:
            The errors emitted (duplicates excluded)
        """
        emitted: list[CapturedError] = []
        for path in paths:
            document = self._workspace.get_open_document(path)
            if document is None or document.language_id not in self._config.supported_languages:
                continue

            for diagnostic in self._workspace.get_diagnostics(path):
                if not diagnostic.is_error:
                    continue
                error = self.build_error(
                    message=diagnostic.message,
                    document=document,
                    line=diagnostic.start_line + 1,
                    source=ErrorSource.DIAGNOSTICS,
                )
                if self._emit(error):
                    emitted.append(error)
        return emitted

    def build_error(
        self,
        message: str,
        document: TextDocument,
        line: int,
        source: ErrorSource,
    ) -> CapturedError:
        """Build a CapturedError with context sliced from a document."""
        context = extract_code_context(
            document.text,
            line,
            self._config.context_lines,
            file_path=document.path,
        )
        return CapturedError(
            message=message,
            file=document.path,
            line=line,
            language=document.language_id,
            code_context=context.content,
            severity=ErrorSeverity.ERROR,
            source=source,
        )

    # ------------------------------------------------------------------
    # Process-output channel
    # ------------------------------------------------------------------

    def on_process_output(self, text: str) -> asyncio.Task[CapturedError | None] | None:
        """Handle a chunk of process output.

        Parsing happens immediately; resolving the file reference is async
        and runs in the background. Resolutions run one at a time, so errors
        are emitted in the order their chunks arrived.

        Returns:
            The background task, or None if the chunk holds no error
        """
        match = self._parser.parse(text)
        if match is None:
            log.debug(LogEventNames.OUTPUT_NO_ERROR, length=len(text))
            return None
        return self._tasks.spawn(self._resolve_output_error(match), name="resolve_output_error")

    async def handle_process_output(self, text: str) -> CapturedError | None:
        """Parse, resolve and emit in one awaitable step.

        Returns:
            The emitted error, or None if there was no error or it was a duplicate
        """
        match = self._parser.parse(text)
        if match is None:
            return None
        return await self._resolve_output_error(match)

    async def _resolve_output_error(self, match: OutputErrorMatch) -> CapturedError | None:
        async with self._output_lock:
            return await self._resolve_locked(match)

    async def _resolve_locked(self, match: OutputErrorMatch) -> CapturedError | None:
        line = match.line or 1
        document: TextDocument | None = None
        if match.file is not None:
            document = await self._open_reference(match.file)

        if document is not None:
            error = self.build_error(
                message=match.full_message,
                document=document,
                line=line,
                source=ErrorSource.TERMINAL,
            )
        else:
            error = CapturedError(
                message=match.full_message,
                file=match.file or self._config.unknown_file,
                line=line,
                language=self._config.fallback_language,
                code_context="",
                severity=ErrorSeverity.ERROR,
                source=ErrorSource.TERMINAL,
                degraded=True,
            )

        if not self._emit(error):
            return None
        if error.degraded:
            self._degraded += 1
            log.info(LogEventNames.ERROR_DEGRADED, file=error.file, line=error.line)
        return error

    async def _open_reference(self, reference: str) -> TextDocument | None:
        """Open the first workspace file a reference resolves to."""
        for candidate in self.resolve_candidates(reference):
            try:
                return await with_timeout(
                    self._workspace.open_document(str(candidate)),
                    self._config.read_timeout,
                )
            except (OSError, FixTraceError) as e:
                log.debug("reference_candidate_unreadable", candidate=str(candidate), error=str(e))
        return None

    def resolve_candidates(self, reference: str) -> list[Path]:
        """List the paths a file reference may denote, one per known root.

        Relative references are joined to each root; absolute references are
        kept only when they lie inside a root. Candidates escaping their root
        are dropped.
        """
        ref_path = Path(reference.replace("\\", "/"))
        candidates: list[Path] = []
        for root in self._workspace.roots:
            root_resolved = root.resolve()
            full_path = ref_path if ref_path.is_absolute() else root / ref_path
            full_path = full_path.resolve()
            try:
                full_path.relative_to(root_resolved)
            except ValueError:
                continue
            if full_path not in candidates:
                candidates.append(full_path)
        return candidates

    # ------------------------------------------------------------------
    # Emission
    # ------------------------------------------------------------------

    def _emit(self, error: CapturedError) -> bool:
        if not self._recent.check_and_record(error.key):
            self._duplicates += 1
            log.debug(
                LogEventNames.ERROR_DUPLICATE,
                file=error.file,
                line=error.line,
                source=error.source,
            )
            return False

        self._detected += 1
        log.info(
            LogEventNames.ERROR_DETECTED,
            file=error.file,
            line=error.line,
            source=error.source,
            message=error.message,
        )
        self.on_error_detected.fire(error)
        return True
