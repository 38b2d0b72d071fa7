"""ISystemAdapter interface — abstraction for running IME commands."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class CommandResult:
    stdout: str
    stderr: str
    returncode: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ISystemAdapter(ABC):
    @abstractmethod
    def run_command(self, command: str, timeout: float | None = None) -> CommandResult:
        """Run a shell command line and wait for it to finish.

        Must not raise: spawn errors are reported as ``returncode=-1``.
        """
