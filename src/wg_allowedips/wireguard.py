"""Read and write WireGuard peer configuration with the ``wg`` tool."""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Dict, Iterable, Optional

from .addr import AddressRange, format_ranges, parse_range_list
from .command import CommandRunner, Runner, check_output
from .model import Peer

LOG = logging.getLogger(__name__)

SECTION_PEER = "[Peer]"
FIELD_RE = re.compile(r"(\S+)\s*=\s*(.+)")


class PeerField(Enum):
    """Keys recognised inside a ``[Peer]`` section."""

    PUBLIC_KEY = "PublicKey"
    PRESHARED_KEY = "PresharedKey"
    ALLOWED_IPS = "AllowedIPs"
    ENDPOINT = "Endpoint"
    PERSISTENT_KEEPALIVE = "PersistentKeepalive"

    @classmethod
    def lookup(cls, key: str) -> Optional["PeerField"]:
        try:
            return cls(key)
        except ValueError:
            return None


def _parse_keepalive(value: str) -> Optional[int]:
    if value.isdigit():
        return int(value) or None
    return None


def _apply_field(peer: Peer, key: PeerField, value: str, device: str) -> None:
    if key is PeerField.PUBLIC_KEY:
        peer.public_key = value
    elif key is PeerField.PRESHARED_KEY:
        peer.preshared_key = value
    elif key is PeerField.ENDPOINT:
        peer.endpoint = value
    elif key is PeerField.PERSISTENT_KEEPALIVE:
        peer.persistent_keepalive = _parse_keepalive(value)
    elif key is PeerField.ALLOWED_IPS:
        ranges, rejected = parse_range_list(value)
        for token in rejected:
            LOG.warning("%s: failed to parse address: %s", device, token)
        peer.allowed_ips.extend(ranges)


def parse_showconf(text: str, device: str = "") -> Dict[str, Peer]:
    """Decode ``wg showconf`` output into peers keyed by public key.

    The ``[Interface]`` section and unknown keys are ignored.  A peer section
    without a ``PublicKey`` is dropped.
    """

    peers: Dict[str, Peer] = {}
    current: Optional[Peer] = None

    def _flush() -> None:
        if current is not None and current.public_key:
            peers[current.public_key] = current

    for raw in text.splitlines():
        line = raw.strip()
        if line.startswith(SECTION_PEER):
            _flush()
            current = Peer(public_key="")
            continue
        if line.startswith("["):
            _flush()
            current = None
            continue
        if current is None or line.startswith("#"):
            continue

        match = FIELD_RE.match(line)
        if match is None:
            continue
        key = PeerField.lookup(match.group(1))
        if key is None:
            continue
        _apply_field(current, key, match.group(2).strip(), device)

    _flush()
    return peers


class WireGuardClient:
    """Invoke ``wg showconf`` / ``wg set`` for a device."""

    def __init__(self, runner: Optional[Runner] = None, wg_binary: str = "wg") -> None:
        self._runner = runner or CommandRunner()
        self._wg = wg_binary

    def read_peers(self, device: str) -> Dict[str, Peer]:
        stdout = check_output(
            self._runner, [self._wg, "showconf", device], f"query interface {device}"
        )
        return parse_showconf(stdout, device)

    def set_allowed_ips(
        self, device: str, public_key: str, allowed_ips: Iterable[AddressRange]
    ) -> None:
        cmd = [
            self._wg,
            "set",
            device,
            "peer",
            public_key,
            "allowed-ips",
            format_ranges(allowed_ips),
        ]
        check_output(self._runner, cmd, "update peer")
