"""EventManager — validates raw editor notifications, publishes typed events."""

from __future__ import annotations

import logging
import time

import imorch.log  # registers TRACE level and logger.trace()
from imorch.core.event_bus import EventBus
from imorch.core.events import DocumentEventData, Event, EventType, ModeEventData
from imorch.core.states import EditorSnapshot, Mode

logger = logging.getLogger(__name__)


class EventManager:
    """Entry point for editor adapter callbacks.

    Notifications may be duplicated or arrive in bursts; filtering real
    transitions is the classifier's job. Malformed notifications are logged
    and dropped here so the classifier only ever sees typed values.
    """

    def __init__(self, event_bus: EventBus, debug: bool = False):
        self.bus = event_bus
        self.debug = debug

    def handle_mode_change(self, raw_mode) -> None:
        if not isinstance(raw_mode, str) or not raw_mode.strip():
            logger.debug("Ignoring malformed mode notification: %r", raw_mode)
            return
        logger.trace("RawEvent: mode=%s", raw_mode)  # type: ignore[attr-defined]
        data = ModeEventData(mode=Mode.from_editor(raw_mode), raw=raw_mode)
        self.bus.publish(Event(EventType.MODE_CHANGED, data, time.time()))

    def handle_document_change(self, snapshot) -> None:
        if not isinstance(snapshot, EditorSnapshot) or not isinstance(snapshot.text, str):
            logger.debug("Ignoring malformed document notification: %r", snapshot)
            return
        if isinstance(snapshot.caret, bool) or not isinstance(snapshot.caret, int) or snapshot.caret < 0:
            logger.debug("Ignoring notification with bad caret: %r", snapshot.caret)
            return
        logger.trace("RawEvent: caret=%d len=%d", snapshot.caret, len(snapshot.text))  # type: ignore[attr-defined]
        self.bus.publish(Event(EventType.DOCUMENT_CHANGED, DocumentEventData(snapshot), time.time()))

    def handle_focus_change(self) -> None:
        logger.trace("RawEvent: focus")  # type: ignore[attr-defined]
        self.bus.publish(Event(EventType.FOCUS_CHANGED, None, time.time()))
