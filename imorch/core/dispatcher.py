"""CommandDispatcher — single-flight execution of IME switch commands."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Callable

import imorch.log  # registers TRACE level and logger.trace()

if TYPE_CHECKING:
    from imorch.platform.system_adapter import ISystemAdapter
    from imorch.ui.status import IStatusSink

logger = logging.getLogger(__name__)

# Identical commands closer together than this are editor-event jitter
DEDUP_WINDOW = 0.3
# Pause before draining the pending slot so follow-up transitions can settle
SETTLE_DELAY = 0.01

STATUS_ERROR = "IME ERR"


@dataclass
class DispatchState:
    executing: bool = False
    pending_command: str | None = None
    last_command: str | None = None
    last_dispatch_time: float = 0.0


class CommandDispatcher:
    """Runs at most one external command at a time.

    ``dispatch()`` never blocks in async mode and never raises. While a
    command runs, new requests go to a single pending slot (last writer
    wins); the run loop drains that slot once the current command finishes,
    so a burst of transitions collapses to "current, then latest".

    In-flight commands are never killed and no timeout is imposed on them.
    """

    def __init__(
        self,
        system: "ISystemAdapter",
        async_exec: bool = True,
        dedup_window: float = DEDUP_WINDOW,
        settle_delay: float = SETTLE_DELAY,
        status: "IStatusSink | None" = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        debug: bool = False,
    ):
        self.system = system
        self.async_exec = async_exec
        self.dedup_window = dedup_window
        self.settle_delay = settle_delay
        self.status = status
        self.debug = debug
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._state = DispatchState()
        self._closed = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> DispatchState:
        """Copy of the current dispatch state."""
        with self._lock:
            return replace(self._state)

    @property
    def executing(self) -> bool:
        with self._lock:
            return self._state.executing

    @property
    def pending_command(self) -> str | None:
        with self._lock:
            return self._state.pending_command

    @property
    def last_command(self) -> str | None:
        with self._lock:
            return self._state.last_command

    def dispatch(self, command: str | None) -> bool:
        """Run or queue *command*.

        Returns True if the command was started or queued, False if it was
        blank, a duplicate, or the dispatcher is closed.
        """
        if not command or not command.strip():
            return False

        with self._lock:
            if self._closed:
                logger.trace("Dispatcher closed, dropping %r", command)  # type: ignore[attr-defined]
                return False
            if self._state.executing:
                # Dedup is applied when the pending slot is drained
                if self._state.pending_command is not None and self.debug:
                    logger.debug("Pending command %r replaced by %r", self._state.pending_command, command)
                self._state.pending_command = command
                return True
            if self._is_duplicate(command):
                logger.debug("Duplicate command within %.2fs dropped: %s", self.dedup_window, command)
                return False
            self._begin(command)

        if self.async_exec:
            worker = threading.Thread(
                target=self._run_loop, args=(command,), daemon=True, name="ime-dispatch",
            )
            worker.start()
        else:
            self._run_loop(command)
        return True

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until no command is executing. Returns False on timeout."""
        with self._idle:
            return self._idle.wait_for(lambda: not self._state.executing, timeout)

    def close(self) -> None:
        """Drop any pending command; later dispatches are ignored."""
        with self._lock:
            self._closed = True
            if self._state.pending_command is not None:
                logger.debug("Shutdown: dropping pending command %r", self._state.pending_command)
            self._state.pending_command = None

    # ------------------------------------------------------------------
    # Internal (lock held)
    # ------------------------------------------------------------------

    def _is_duplicate(self, command: str) -> bool:
        return (
            command == self._state.last_command
            and self._clock() - self._state.last_dispatch_time < self.dedup_window
        )

    def _begin(self, command: str) -> None:
        self._state.executing = True
        self._state.last_command = command
        self._state.last_dispatch_time = self._clock()

    def _finish(self) -> None:
        self._state.executing = False
        self._state.pending_command = None
        self._idle.notify_all()

    # ------------------------------------------------------------------
    # Run loop
    # ------------------------------------------------------------------

    def _run_loop(self, command: str) -> None:
        finished = False
        try:
            next_command: str | None = command
            while next_command is not None:
                self._execute(next_command)
                next_command = self._next_pending()
            finished = True
        finally:
            if not finished:
                with self._lock:
                    self._finish()

    def _next_pending(self) -> str | None:
        """Take the pending command to run next, or go idle."""
        while True:
            with self._lock:
                if self._closed or self._state.pending_command is None:
                    self._finish()
                    return None

            self._sleep(self.settle_delay)

            with self._lock:
                command = self._state.pending_command
                self._state.pending_command = None
                if self._closed or command is None:
                    self._finish()
                    return None
                if self._is_duplicate(command):
                    logger.debug("Pending command duplicates last one, dropped: %s", command)
                    continue
                self._begin(command)
                return command

    def _execute(self, command: str) -> None:
        logger.info("IME command: %s", command)
        try:
            result = self.system.run_command(command)
        except Exception as exc:
            logger.error("IME command %r failed: %s", command, exc)
            self._report(STATUS_ERROR)
            return

        if result.returncode != 0:
            logger.warning(
                "IME command %r exited with %d: %s",
                command, result.returncode, result.stderr.strip(),
            )
            self._report(STATUS_ERROR)
        elif self.debug:
            logger.debug("IME command done: %s → %r", command, result.stdout)

    def _report(self, message: str) -> None:
        if self.status is None:
            return
        try:
            self.status.set_status(message)
        except Exception:
            logger.exception("Status sink error")
