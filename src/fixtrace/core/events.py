"""In-process event channels.

``EventEmitter`` is the only way components talk to each other: the host
fires workspace signals into ``WorkspaceSignals``, the detector fires
``CapturedError`` and the tracker fires ``CapturedDiff``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

import structlog

from fixtrace.models.workspace import DocumentChange, TextDocument

log = structlog.get_logger()

T = TypeVar("T")

Listener = Callable[[T], object]
Unsubscribe = Callable[[], None]


class EventEmitter(Generic[T]):
    """Synchronous multi-listener event.

    Listeners run in subscription order on the caller's stack. A listener
    that raises is logged and skipped; the remaining listeners still run.

    Example:
        emitter: EventEmitter[str] = EventEmitter("process_output")
        unsubscribe = emitter.subscribe(print)
        emitter.fire("hello")
        unsubscribe()
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: list[Listener[T]] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: Listener[T]) -> Unsubscribe:
        """Register a listener.

        Returns:
            Callable that removes the listener; safe to call more than once.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            self.unsubscribe(listener)

        return unsubscribe

    def unsubscribe(self, listener: Listener[T]) -> None:
        """Remove a listener. Unknown listeners are ignored."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def fire(self, event: T) -> None:
        """Deliver an event to every current listener."""
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                log.exception(
                    "event_listener_failed",
                    emitter=self.name,
                    listener=getattr(listener, "__qualname__", repr(listener)),
                )

    def clear(self) -> None:
        """Remove all listeners."""
        self._listeners.clear()


@dataclass
class WorkspaceSignals:
    """Notifications the host pushes into the core.

    The host integration owns one of these and fires into it; the detector
    and tracker subscribe.
    """

    diagnostics_changed: EventEmitter[list[str]] = field(
        default_factory=lambda: EventEmitter("diagnostics_changed")
    )
    will_save: EventEmitter[TextDocument] = field(
        default_factory=lambda: EventEmitter("will_save")
    )
    did_save: EventEmitter[TextDocument] = field(
        default_factory=lambda: EventEmitter("did_save")
    )
    document_changed: EventEmitter[DocumentChange] = field(
        default_factory=lambda: EventEmitter("document_changed")
    )
    process_output: EventEmitter[str] = field(
        default_factory=lambda: EventEmitter("process_output")
    )
