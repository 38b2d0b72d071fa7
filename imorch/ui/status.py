"""Status sinks — where dispatch failures and transitions are surfaced."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class IStatusSink(ABC):
    @abstractmethod
    def set_status(self, message: str) -> None: ...


class NullStatusSink(IStatusSink):
    """Status display disabled."""

    def set_status(self, message: str) -> None:
        pass


class LogStatusSink(IStatusSink):
    """Headless status: messages go to the log."""

    def __init__(self) -> None:
        self.message = ""

    def set_status(self, message: str) -> None:
        if message == self.message:
            return
        self.message = message
        if message:
            logger.warning("Status: %s", message)
