"""Error types raised by the allowed-ips synchronizer."""

from __future__ import annotations

from typing import Optional, Sequence


class MalformedAddress(ValueError):
    """Address or range text that cannot be parsed."""

    def __init__(self, text: str, reason: str = "") -> None:
        message = f"malformed address '{text}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.text = text


class CommandFailure(RuntimeError):
    """An external command (``ip``/``wg``) did not succeed."""

    def __init__(
        self,
        message: str,
        cmd: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.cmd = list(cmd) if cmd is not None else None
        self.returncode = returncode
        self.stderr = stderr


class ConfigInconsistency(RuntimeError):
    """More than one peer claims the same role for a single route."""

    def __init__(self, role: str, destination: str, keys: Sequence[str]) -> None:
        super().__init__(
            f"{len(keys)} peers are {role} candidates for {destination}: "
            + ", ".join(keys)
        )
        self.role = role
        self.destination = destination
        self.keys = tuple(keys)
