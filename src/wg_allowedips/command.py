"""Thin wrapper around :mod:`subprocess` for the ``ip`` and ``wg`` tools."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from .exceptions import CommandFailure

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of an external command."""

    cmd: Sequence[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


Runner = Callable[[Sequence[str]], CommandResult]


class CommandRunner:
    """Run commands synchronously and capture their output.

    ``timeout`` is applied per command when set; a command that runs past it
    is reported like any other failure.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._timeout = timeout

    def __call__(self, cmd: Sequence[str]) -> CommandResult:
        LOG.debug("Executing: %s", " ".join(cmd))
        try:
            proc = subprocess.run(
                list(cmd),
                check=False,
                text=True,
                capture_output=True,
                timeout=self._timeout,
            )
        except FileNotFoundError as exc:
            return CommandResult(cmd, 127, "", str(exc))
        except OSError as exc:
            return CommandResult(cmd, 126, "", str(exc))
        except subprocess.TimeoutExpired:
            return CommandResult(cmd, -1, "", f"timed out after {self._timeout}s")
        return CommandResult(cmd, proc.returncode, proc.stdout.strip(), proc.stderr.strip())


def check_output(runner: Runner, cmd: Sequence[str], what: str) -> str:
    """Run ``cmd`` and return stdout, raising :class:`CommandFailure` on error."""

    result = runner(cmd)
    if not result.ok:
        raise CommandFailure(
            f"failed to {what}: {result.stderr.lower()}",
            cmd=cmd,
            returncode=result.returncode,
            stderr=result.stderr,
        )
    return result.stdout
