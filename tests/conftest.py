"""Shared test doubles: system adapter, clock, status sink."""

from __future__ import annotations

import threading

import pytest

from imorch.platform.system_adapter import CommandResult, ISystemAdapter
from imorch.ui.status import IStatusSink


class MockSystemAdapter(ISystemAdapter):
    """Records commands instead of running them.

    ``gate`` (threading.Event) makes run_command block until it is set,
    which keeps a command "in flight" for concurrency tests.
    """

    def __init__(self, returncode: int = 0, raise_exc: Exception | None = None, gate: threading.Event | None = None):
        self.calls: list[str] = []
        self.threads: list[str] = []
        self.returncode = returncode
        self.raise_exc = raise_exc
        self.gate = gate
        self.started = threading.Event()
        self._lock = threading.Lock()

    def run_command(self, command: str, timeout: float | None = None) -> CommandResult:
        with self._lock:
            self.calls.append(command)
            self.threads.append(threading.current_thread().name)
        self.started.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.raise_exc is not None:
            raise self.raise_exc
        stderr = "" if self.returncode == 0 else "boom"
        return CommandResult(stdout="", stderr=stderr, returncode=self.returncode)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingStatusSink(IStatusSink):
    def __init__(self):
        self.messages: list[str] = []

    def set_status(self, message: str) -> None:
        self.messages.append(message)


def no_sleep(seconds: float) -> None:
    pass


@pytest.fixture
def mock_system() -> MockSystemAdapter:
    return MockSystemAdapter()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def status_sink() -> RecordingStatusSink:
    return RecordingStatusSink()
