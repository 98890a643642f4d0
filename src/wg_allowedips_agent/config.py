"""YAML configuration loader for the allowed-ips agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from wg_allowedips.sync import REFRESH_FULL, REFRESH_MODES, SyncOptions

DEFAULT_INTERVAL = 10.0
ROUTE_BACKENDS = ("ip", "netlink")


@dataclass
class CommandConfig:
    ip: str = "ip"
    wg: str = "wg"
    timeout: Optional[float] = None


@dataclass
class AgentConfig:
    interface: Optional[str] = None
    proto: Optional[str] = None
    interval: float = DEFAULT_INTERVAL
    route_backend: str = "ip"
    refresh_mode: str = REFRESH_FULL
    strict: bool = False
    require_local_nexthop: bool = False
    dry_run: bool = False
    commands: CommandConfig = field(default_factory=CommandConfig)

    def to_sync_options(self) -> SyncOptions:
        return SyncOptions(
            proto=self.proto,
            strict=self.strict,
            require_local_nexthop=self.require_local_nexthop,
            refresh_mode=self.refresh_mode,
            dry_run=self.dry_run,
        )


def _parse_commands(section: dict) -> CommandConfig:
    if not isinstance(section, dict):
        raise ValueError("'commands' section must be a mapping")
    timeout = section.get("timeout")
    return CommandConfig(
        ip=str(section.get("ip", "ip")),
        wg=str(section.get("wg", "wg")),
        timeout=float(timeout) if timeout is not None else None,
    )


def _parse_interval(value) -> float:
    interval = float(value)
    if interval <= 0:
        raise ValueError("'interval' must be a positive number of seconds")
    return interval


def parse_config(data: dict) -> AgentConfig:
    section = data.get("agent", {})
    if not isinstance(section, dict):
        raise ValueError("'agent' section must be a mapping")

    backend = str(section.get("route_backend", "ip"))
    if backend not in ROUTE_BACKENDS:
        raise ValueError(f"unsupported route backend '{backend}'")

    refresh_mode = str(section.get("refresh_mode", REFRESH_FULL))
    if refresh_mode not in REFRESH_MODES:
        raise ValueError(f"unsupported refresh mode '{refresh_mode}'")

    interface = section.get("interface")
    proto = section.get("proto")

    return AgentConfig(
        interface=str(interface) if interface else None,
        proto=str(proto) if proto else None,
        interval=_parse_interval(section.get("interval", DEFAULT_INTERVAL)),
        route_backend=backend,
        refresh_mode=refresh_mode,
        strict=bool(section.get("strict", False)),
        require_local_nexthop=bool(section.get("require_local_nexthop", False)),
        dry_run=bool(section.get("dry_run", False)),
        commands=_parse_commands(data.get("commands", {})),
    )


def load_config(path: Path) -> AgentConfig:
    data = yaml.safe_load(path.read_text())
    if data is None:
        return AgentConfig()
    if not isinstance(data, dict):
        raise ValueError("Agent configuration must be a mapping")
    return parse_config(data)
