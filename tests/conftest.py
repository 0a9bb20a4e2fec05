"""Shared test fixtures for fixtrace."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from pathlib import Path

import pytest

from fixtrace.config.schema import DetectorConfig, TrackerConfig
from fixtrace.core.events import WorkspaceSignals
from fixtrace.models.workspace import Diagnostic, DiagnosticSeverity, DocumentChange, TextDocument

ROOT = Path("/workspace/demo-app")


class FakeWorkspace:
    """In-memory editor host.

    ``open_documents`` are live buffers; ``disk`` holds files that can only be
    reached through ``open_document``, after ``open_delays`` seconds when set.
    Mutators fire the matching signals.
    """

    def __init__(self, signals: WorkspaceSignals | None = None, roots: Sequence[Path] = (ROOT,)) -> None:
        self.signals = signals or WorkspaceSignals()
        self._roots = list(roots)
        self.open_documents: dict[str, TextDocument] = {}
        self.disk: dict[str, TextDocument] = {}
        self.diagnostics: dict[str, list[Diagnostic]] = {}
        self.open_calls: list[str] = []
        self.fail_opens: set[str] = set()
        self.open_delays: dict[str, float] = {}

    @property
    def roots(self) -> Sequence[Path]:
        return self._roots

    def get_diagnostics(self, path: str) -> Sequence[Diagnostic]:
        return list(self.diagnostics.get(path, []))

    def get_open_document(self, path: str) -> TextDocument | None:
        return self.open_documents.get(path)

    async def open_document(self, path: str) -> TextDocument:
        self.open_calls.append(path)
        if path in self.open_delays:
            await asyncio.sleep(self.open_delays[path])
        if path in self.fail_opens:
            raise FileNotFoundError(path)
        if path in self.open_documents:
            return self.open_documents[path]
        if path in self.disk:
            return self.disk[path]
        raise FileNotFoundError(path)

    # -- helpers used by tests ------------------------------------------

    def open(self, path: str, text: str, language_id: str = "typescriptreact") -> TextDocument:
        document = TextDocument(path=path, text=text, language_id=language_id)
        self.open_documents[path] = document
        return document

    def edit(self, path: str, text: str) -> TextDocument:
        """Replace a buffer's text and fire a content change."""
        old = self.open_documents[path]
        document = TextDocument(
            path=path, text=text, language_id=old.language_id, version=old.version + 1
        )
        self.open_documents[path] = document
        self.signals.document_changed.fire(DocumentChange(document=document, change_count=1))
        return document

    def set_errors(self, path: str, *lines: int, message: str = "Cannot find name 'x'.") -> None:
        """Set error diagnostics (1-indexed lines) and fire diagnostics_changed."""
        self.diagnostics[path] = [
            Diagnostic(message=message, start_line=line - 1, severity=DiagnosticSeverity.ERROR)
            for line in lines
        ]
        self.signals.diagnostics_changed.fire([path])

    def save(self, path: str) -> TextDocument:
        """Fire the will/did save pair for a buffer."""
        document = self.open_documents[path]
        self.signals.will_save.fire(document)
        self.signals.did_save.fire(document)
        return document


@pytest.fixture
def signals() -> WorkspaceSignals:
    """Return fresh workspace signals."""
    return WorkspaceSignals()


@pytest.fixture
def workspace(signals: WorkspaceSignals) -> FakeWorkspace:
    """Return an empty in-memory workspace rooted at ROOT."""
    return FakeWorkspace(signals)


@pytest.fixture
def fast_tracker_config() -> TrackerConfig:
    """Tracker settle delays short enough for tests."""
    return TrackerConfig(
        diagnostics_settle_delay=0.02,
        content_settle_delay=0.08,
        snapshot_timeout=1.0,
    )


@pytest.fixture
def detector_config() -> DetectorConfig:
    """Detector config with a small context window."""
    return DetectorConfig(context_lines=2, read_timeout=1.0)


@pytest.fixture
def workspace_root() -> Path:
    """Root folder of the fake workspace."""
    return ROOT


@pytest.fixture
def app_path(workspace_root: Path) -> str:
    """Path of the demo app's main component."""
    return str(workspace_root / "src" / "App.tsx")


@pytest.fixture
def sample_source() -> str:
    """A small TSX document with an error on line 4."""
    return (
        "import React from 'react';\n"
        "\n"
        "export function App() {\n"
        "  const total = itemz.length;\n"
        "  return <div>{total}</div>;\n"
        "}\n"
    )
