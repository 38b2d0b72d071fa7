"""Typed event definitions (dataclasses)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from imorch.core.states import EditorSnapshot, Intent, Mode


class EventType(Enum):
    # Editor notifications
    MODE_CHANGED = auto()
    DOCUMENT_CHANGED = auto()
    FOCUS_CHANGED = auto()
    # Classified transitions
    INTENT = auto()
    # Config
    CONFIG_CHANGED = auto()


@dataclass
class Event:
    type: EventType
    data: Any
    timestamp: float


@dataclass
class ModeEventData:
    mode: Mode
    raw: str = ""


@dataclass
class DocumentEventData:
    snapshot: EditorSnapshot


@dataclass
class IntentEventData:
    intent: Intent
    command: str = ""
