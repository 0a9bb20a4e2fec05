"""Abstract interface for the editor host the core observes."""

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from ..models.workspace import Diagnostic, TextDocument


class Workspace(Protocol):
    """Read-only view of an editing session.

    Implemented by the host integration (editor extension, language-server
    client, test fake). The core never writes through this interface.
    """

    @property
    def roots(self) -> Sequence[Path]:
        """Known project roots, in resolution order."""
        ...

    def get_diagnostics(self, path: str) -> Sequence[Diagnostic]:
        """
        Return the current diagnostics for a file.

        Args:
            path: File path as used by the host

        Returns:
            Diagnostics of every severity; empty if none or unknown file
        """
        ...

    def get_open_document(self, path: str) -> TextDocument | None:
        """
        Return the live buffer for a file if it is currently open.

        Args:
            path: File path as used by the host

        Returns:
            Snapshot of the buffer, or None if the file is not open
        """
        ...

    async def open_document(self, path: str) -> TextDocument:
        """
        Open a file from disk.

        Args:
            path: File path to open

        Returns:
            Snapshot of the file

        Raises:
            OSError: If the file is missing or unreadable
            DocumentOpenError: If the host refuses to open it
        """
        ...
