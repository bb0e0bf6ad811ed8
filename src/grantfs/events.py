"""EventBus and event types for share activity."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Things a Share reports as they happen."""

    FILE_SYSTEM_ADDED = "file_system_added"
    GRANT_ADDED = "grant_added"
    ACCESS_GRANTED = "access_granted"
    ACCESS_DENIED = "access_denied"
    GRANTS_PURGED = "grants_purged"


@dataclass(frozen=True, slots=True)
class ShareEvent:
    """Immutable record of share activity.

    Attributes:
        event_type: What happened.
        file_system: Name of the file system involved, if any.
        path: Root-relative path for access events, None otherwise.
        count: Number of grants removed (purges only).
    """

    event_type: EventType
    file_system: str | None = None
    path: str | None = None
    count: int | None = None


class EventBus:
    """Dispatches share events to registered handlers.

    Handlers are called synchronously, in registration order, on the
    thread that caused the event.  Exceptions are logged but never
    propagated.
    """

    def __init__(self) -> None:
        self._handlers: dict[EventType, list[Callable[..., Any]]] = {et: [] for et in EventType}
        self._lock = threading.Lock()

    def register(self, event_type: EventType, handler: Callable[..., Any]) -> None:
        """Append *handler* to the list for *event_type*."""
        with self._lock:
            self._handlers[event_type].append(handler)

    def unregister(self, event_type: EventType, handler: Callable[..., Any]) -> bool:
        """Remove first occurrence of *handler*. Return True if found."""
        with self._lock:
            handlers = self._handlers[event_type]
            try:
                handlers.remove(handler)
                return True
            except ValueError:
                return False

    def emit(self, event: ShareEvent) -> None:
        """Dispatch *event* to all registered handlers for its type."""
        with self._lock:
            handlers = list(self._handlers[event.event_type])
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.warning(
                    "Handler %r failed for %s on %s",
                    handler,
                    event.event_type.value,
                    event.file_system,
                    exc_info=True,
                )

    @property
    def handler_count(self) -> int:
        """Total number of registered handlers across all event types."""
        with self._lock:
            return sum(len(h) for h in self._handlers.values())

    def clear(self) -> None:
        """Remove all registered handlers."""
        with self._lock:
            for handlers in self._handlers.values():
                handlers.clear()
