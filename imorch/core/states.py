"""Mode, intent and classifier state definitions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class Mode(Enum):
    NORMAL = auto()
    INSERT = auto()

    @classmethod
    def from_editor(cls, raw: str) -> "Mode":
        """Map an editor's mode name to a Mode.

        Only ``insert`` counts as INSERT; visual, replace and every other
        modal state collapse to NORMAL.
        """
        return cls.INSERT if raw.strip().lower() == "insert" else cls.NORMAL


class Intent(Enum):
    INSERT_ENTER = auto()
    INSERT_LEAVE = auto()
    MATH_ENTER = auto()
    MATH_LEAVE = auto()


@dataclass(frozen=True)
class ClassifierState:
    mode: Mode = Mode.NORMAL
    # Only meaningful while mode is INSERT
    in_math: bool = False


@dataclass(frozen=True)
class EditorSnapshot:
    """Document text and caret position captured at notification time.

    ``caret`` is a Python string index (code points).
    """
    text: str
    caret: int
