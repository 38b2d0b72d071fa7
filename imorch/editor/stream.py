"""StreamEditorAdapter — editor notifications as JSON lines.

An editor-side plugin writes one JSON object per line to stdin or a FIFO::

    {"type": "mode", "mode": "insert"}
    {"type": "document", "text": "a $x$ b", "caret": 3}
    {"type": "caret", "caret": 5}
    {"type": "focus"}

``caret`` is a code-point offset into ``text``. A ``document`` message
without ``caret`` keeps the previous caret (clamped to the new text).
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Callable, TextIO

import imorch.log  # registers TRACE level and logger.trace()
from imorch.core.states import EditorSnapshot
from imorch.editor.base import CallbackEditorAdapter

logger = logging.getLogger(__name__)


class StreamEditorAdapter(CallbackEditorAdapter):
    """Reads notifications from a text stream.

    Parameters:
        stream: line-oriented text stream (``sys.stdin``, an opened FIFO).
        on_eof: called once the stream is exhausted.
    """

    def __init__(self, stream: TextIO, on_eof: Callable[[], None] | None = None):
        super().__init__()
        self.stream = stream
        self.on_eof = on_eof
        self._thread: threading.Thread | None = None
        self._running = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Read the stream on a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._running = True
        self._thread = threading.Thread(target=self.run, daemon=True, name="editor-stream")
        self._thread.start()

    def stop(self) -> None:
        """Stop after the current line (a blocked read is not interrupted)."""
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def run(self) -> None:
        """Blocking read loop."""
        self._running = True
        try:
            for line in self.stream:
                if not self._running:
                    break
                self.feed_line(line)
        except (OSError, ValueError) as exc:
            logger.error("Editor stream error: %s", exc)
        finally:
            self._running = False
            if self.on_eof is not None:
                self.on_eof()

    def feed_line(self, line: str) -> None:
        """Parse one notification line and notify listeners."""
        line = line.strip()
        if not line:
            return
        logger.trace("editor << %s", line[:200])  # type: ignore[attr-defined]

        try:
            message = json.loads(line)
        except ValueError:
            logger.warning("Malformed editor notification: %r", line[:200])
            return
        if not isinstance(message, dict):
            logger.warning("Editor notification is not an object: %r", line[:200])
            return

        kind = message.get("type")
        if kind == "mode":
            self._emit_mode(message.get("mode"))
        elif kind == "document":
            self._on_document(message)
        elif kind == "caret":
            self._on_caret(message)
        elif kind == "focus":
            self._emit_focus()
        else:
            logger.debug("Unknown editor notification type: %r", kind)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _valid_caret(value) -> bool:
        return isinstance(value, int) and not isinstance(value, bool) and value >= 0

    def _on_document(self, message: dict) -> None:
        text = message.get("text")
        if not isinstance(text, str):
            logger.debug("Document notification without text: %r", message)
            return
        if "caret" in message:
            caret = message["caret"]
            if not self._valid_caret(caret):
                logger.debug("Document notification with bad caret: %r", caret)
                return
        else:
            previous = self.get_snapshot()
            caret = previous.caret if previous is not None else 0
        self._emit_document(EditorSnapshot(text=text, caret=min(caret, len(text))))

    def _on_caret(self, message: dict) -> None:
        caret = message.get("caret")
        if not self._valid_caret(caret):
            logger.debug("Caret notification with bad caret: %r", caret)
            return
        previous = self.get_snapshot()
        if previous is None:
            logger.debug("Caret notification before any document, ignored")
            return
        self._emit_document(EditorSnapshot(text=previous.text, caret=min(caret, len(previous.text))))
