"""TransitionClassifier — turns raw editor notifications into intents."""

from __future__ import annotations

import logging

import imorch.log  # registers TRACE level and logger.trace()
from imorch.core.math_detector import is_in_math
from imorch.core.states import ClassifierState, EditorSnapshot, Intent, Mode
from imorch.core.transitions import MathPredicate, on_mode, on_snapshot

logger = logging.getLogger(__name__)


class TransitionClassifier:
    """Holds ``{mode, in_math}`` and emits at most one Intent per call.

    Redundant reports (same mode twice, caret moves that stay on the same
    side of a math boundary) emit nothing. Not thread-safe: it is driven by a
    single editor event stream.
    """

    def __init__(self, detector: MathPredicate = is_in_math, debug: bool = False):
        self.detector = detector
        self.debug = debug
        self._state = ClassifierState()

    @property
    def state(self) -> ClassifierState:
        return self._state

    @property
    def mode(self) -> Mode:
        return self._state.mode

    @property
    def in_math(self) -> bool:
        return self._state.in_math

    def reset(self) -> None:
        self._state = ClassifierState()

    def _apply(self, new_state: ClassifierState, intent: Intent | None, cause: str) -> Intent | None:
        if new_state == self._state:
            logger.trace("Ignored %s in %s", cause, self._state)  # type: ignore[attr-defined]
        elif self.debug:
            logger.debug("Classifier: %s → %s (on %s) intent=%s", self._state, new_state, cause, intent)
        self._state = new_state
        return intent

    def on_mode_change(self, new_mode: Mode | None, snapshot: EditorSnapshot | None = None) -> Intent | None:
        """Feed a mode report; *snapshot* is the caret state at that moment."""
        if new_mode is None:
            return None
        new_state, intent = on_mode(self._state, new_mode, snapshot, self.detector)
        return self._apply(new_state, intent, f"mode {new_mode.name}")

    def on_caret_or_doc_changed(self, snapshot: EditorSnapshot | None) -> Intent | None:
        if snapshot is None:
            return None
        new_state, intent = on_snapshot(self._state, snapshot, self.detector)
        return self._apply(new_state, intent, f"caret {snapshot.caret}")
