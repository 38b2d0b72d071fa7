"""IEditorAdapter — the only view the core has of the host editor."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable

from imorch.core.states import EditorSnapshot

logger = logging.getLogger(__name__)

ModeCallback = Callable[[str], None]
DocumentCallback = Callable[[EditorSnapshot], None]
FocusCallback = Callable[[], None]


class Subscription:
    """Handle returned by ``subscribe_*``; ``unsubscribe()`` is idempotent."""

    def __init__(self, remove: Callable[[], None]):
        self._remove = remove
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        self._remove()


class IEditorAdapter(ABC):
    @abstractmethod
    def subscribe_to_mode_changes(self, callback: ModeCallback) -> Subscription:
        """Call *callback* with the editor's raw mode name on every report."""

    @abstractmethod
    def subscribe_to_document_changes(self, callback: DocumentCallback) -> Subscription:
        """Call *callback* with a fresh snapshot on caret or text changes."""

    @abstractmethod
    def subscribe_to_focus_changes(self, callback: FocusCallback) -> Subscription:
        """Call *callback* when the editor switches to another buffer."""

    @abstractmethod
    def get_snapshot(self) -> EditorSnapshot | None:
        """Current text and caret, or None if no document is known yet."""


class CallbackEditorAdapter(IEditorAdapter):
    """Listener bookkeeping shared by concrete adapters.

    Subclasses call ``_emit_mode`` / ``_emit_document`` / ``_emit_focus``.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._mode_listeners: list[ModeCallback] = []
        self._document_listeners: list[DocumentCallback] = []
        self._focus_listeners: list[FocusCallback] = []
        self._snapshot: EditorSnapshot | None = None

    def _subscribe(self, listeners: list, callback) -> Subscription:
        with self._lock:
            listeners.append(callback)

        def _remove() -> None:
            with self._lock:
                try:
                    listeners.remove(callback)
                except ValueError:
                    pass

        return Subscription(_remove)

    def subscribe_to_mode_changes(self, callback: ModeCallback) -> Subscription:
        return self._subscribe(self._mode_listeners, callback)

    def subscribe_to_document_changes(self, callback: DocumentCallback) -> Subscription:
        return self._subscribe(self._document_listeners, callback)

    def subscribe_to_focus_changes(self, callback: FocusCallback) -> Subscription:
        return self._subscribe(self._focus_listeners, callback)

    def get_snapshot(self) -> EditorSnapshot | None:
        with self._lock:
            return self._snapshot

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._mode_listeners) + len(self._document_listeners) + len(self._focus_listeners)

    def _notify(self, listeners: list, *args) -> None:
        with self._lock:
            targets = list(listeners)
        for callback in targets:
            try:
                callback(*args)
            except Exception:
                logger.exception("Editor listener error")

    def _emit_mode(self, mode: str) -> None:
        self._notify(self._mode_listeners, mode)

    def _emit_document(self, snapshot: EditorSnapshot) -> None:
        with self._lock:
            self._snapshot = snapshot
        self._notify(self._document_listeners, snapshot)

    def _emit_focus(self) -> None:
        self._notify(self._focus_listeners)
