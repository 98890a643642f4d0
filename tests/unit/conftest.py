from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import pytest

from wg_allowedips.command import CommandResult


class FakeHost:
    """Stand-in for the ``ip`` and ``wg`` binaries of a single host.

    ``wg set`` updates the stored peers so later ``wg showconf`` calls read
    the change back, like the real tool would.
    """

    def __init__(self) -> None:
        self.routes = ""
        self.addresses = ""
        self.peers: Dict[str, List[str]] = {}
        self.endpoints: Dict[str, str] = {}
        self.failures: Dict[str, str] = {}
        self.calls: List[List[str]] = []

    def add_peer(self, key: str, allowed_ips: Sequence[str], endpoint: Optional[str] = None) -> None:
        self.peers[key] = list(allowed_ips)
        if endpoint:
            self.endpoints[key] = endpoint

    def showconf(self) -> str:
        lines = ["[Interface]", "ListenPort = 51820", "PrivateKey = cHJpdmF0ZQ=="]
        for key, allowed in self.peers.items():
            lines.extend(["", "[Peer]", f"PublicKey = {key}"])
            if allowed:
                lines.append(f"AllowedIPs = {', '.join(allowed)}")
            if key in self.endpoints:
                lines.append(f"Endpoint = {self.endpoints[key]}")
        return "\n".join(lines)

    def wg_sets(self) -> List[List[str]]:
        return [c for c in self.calls if c[:2] == ["wg", "set"]]

    def _fail(self, name: str, cmd: Sequence[str]) -> Optional[CommandResult]:
        if name in self.failures:
            return CommandResult(cmd, 1, "", self.failures[name])
        return None

    def __call__(self, cmd: Sequence[str]) -> CommandResult:
        cmd = list(cmd)
        self.calls.append(cmd)
        if cmd[0] == "ip" and "route" in cmd:
            return self._fail("route", cmd) or CommandResult(cmd, 0, self.routes, "")
        if cmd[0] == "ip" and "addr" in cmd:
            return self._fail("addr", cmd) or CommandResult(cmd, 0, self.addresses, "")
        if cmd[:2] == ["wg", "showconf"]:
            return self._fail("showconf", cmd) or CommandResult(cmd, 0, self.showconf(), "")
        if cmd[:2] == ["wg", "set"]:
            failed = self._fail("set", cmd)
            if failed:
                return failed
            value = cmd[6]
            self.peers[cmd[4]] = [v for v in value.split(",") if v]
            return CommandResult(cmd, 0, "", "")
        return CommandResult(cmd, 1, "", f"unexpected command {' '.join(cmd)}")


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()
