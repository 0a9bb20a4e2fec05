"""Abstract interfaces for host integrations."""

from .workspace import Workspace

__all__ = ["Workspace"]
