"""EventBus — pub/sub between the editor adapter, classifier and UI."""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Callable

from imorch.core.events import Event, EventType

logger = logging.getLogger(__name__)

Handler = Callable[[Event], None]


class EventBus:
    """Synchronous pub/sub bus.

    Handlers run on the publisher's thread. Subscription changes are
    guarded so a handler may (un)subscribe while an event is in flight,
    e.g. when a focus change re-attaches the editor.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._handlers: dict[EventType, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: EventType, handler: Handler) -> None:
        with self._lock:
            self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: EventType, handler: Handler) -> None:
        """Remove a handler; unknown handlers are ignored."""
        with self._lock:
            try:
                self._handlers[event_type].remove(handler)
            except ValueError:
                pass

    def subscriber_count(self, event_type: EventType) -> int:
        with self._lock:
            return len(self._handlers.get(event_type, ()))

    def publish(self, event: Event) -> None:
        """Deliver *event* to a snapshot of the current handlers.

        A failing handler is logged and does not stop the others.
        """
        with self._lock:
            handlers = list(self._handlers.get(event.type, ()))
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "EventBus handler %s failed for %s",
                    getattr(handler, "__qualname__", handler), event.type.name,
                )
