"""SubprocessSystemAdapter — real implementation of ISystemAdapter."""

from __future__ import annotations

import logging
import os
import subprocess

import imorch.log  # registers TRACE level and logger.trace()
from imorch.platform.system_adapter import CommandResult, ISystemAdapter

logger = logging.getLogger(__name__)


def extend_path(prefix: str, env: dict[str, str] | None = None) -> dict[str, str]:
    """Return a copy of *env* with *prefix* appended to PATH.

    ``~`` and environment variables in *prefix* are expanded.
    """
    out = dict(os.environ if env is None else env)
    prefix = os.path.expandvars(os.path.expanduser(prefix.strip())) if prefix else ""
    if not prefix:
        return out
    current = out.get("PATH", "")
    if prefix in current.split(os.pathsep):
        return out
    out["PATH"] = f"{current}{os.pathsep}{prefix}" if current else prefix
    return out


class SubprocessSystemAdapter(ISystemAdapter):
    """Executes IME commands through the shell with an extended PATH."""

    def __init__(self, path_prefix: str = "", debug: bool = False) -> None:
        self.debug = debug
        self.set_path_prefix(path_prefix)

    def set_path_prefix(self, path_prefix: str) -> None:
        """Rebuild the command environment for *path_prefix*."""
        self.path_prefix = path_prefix
        self.env = extend_path(path_prefix)

    def run_command(self, command: str, timeout: float | None = None) -> CommandResult:
        logger.trace("exec: %s", command)  # type: ignore[attr-defined]
        try:
            r = subprocess.run(
                command,
                shell=True,
                capture_output=True,
                text=True,
                env=self.env,
                timeout=timeout,
            )
            return CommandResult(stdout=r.stdout.strip(), stderr=r.stderr, returncode=r.returncode)
        except subprocess.TimeoutExpired:
            return CommandResult(stdout="", stderr="timeout", returncode=-1)
        except Exception as e:
            return CommandResult(stdout="", stderr=str(e), returncode=-1)
