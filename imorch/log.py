"""Custom logging levels for imorch.

Levels (ascending):
    TRACE =  5  — every raw editor notification, every ignored event
    DEBUG = 10  — classifier transitions, dedup drops, queued commands
    INFO  = 20  — commands executed, startup/shutdown (default)

Usage:
    import imorch.log  # must be imported once before any logger is used
    logger = logging.getLogger(__name__)
    logger.trace("very noisy message")
"""

import logging

TRACE: int = 5
logging.addLevelName(TRACE, "TRACE")


def _trace(self: logging.Logger, message: object, *args: object, **kwargs: object) -> None:
    if self.isEnabledFor(TRACE):
        self._log(TRACE, message, args, **kwargs)  # type: ignore[attr-defined]


# Patch Logger class once at import time
logging.Logger.trace = _trace  # type: ignore[attr-defined]


def level_for(debug: bool = False, trace: bool = False) -> int:
    """Logger level for the CLI flags; ``trace`` implies ``debug``."""
    if trace:
        return TRACE
    return logging.DEBUG if debug else logging.INFO
