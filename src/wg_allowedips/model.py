"""In-memory model of a WireGuard device, its peers and observed routes.

The :class:`Device` doubles as the peer state store.  It is refreshed from
the live configuration on every poll and is otherwise only mutated by the
peer updater, one allowed range at a time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional

from .addr import Address, AddressRange, format_ranges

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class Route:
    """A kernel route: ``destination`` reachable via ``nexthop``."""

    destination: AddressRange
    nexthop: Address

    def __str__(self) -> str:
        return f"{self.destination} via {self.nexthop}"


@dataclass
class Peer:
    """A WireGuard peer as read back from ``wg showconf``.

    Attributes
    ----------
    public_key:
        Stable identity of the peer, used as the key in :attr:`Device.peers`.
    allowed_ips:
        Advertised ranges in configuration order.  The order is kept when the
        list is written back with ``wg set``.
    preshared_key, endpoint, persistent_keepalive:
        Auxiliary metadata.  They are never written back, only kept so the
        model mirrors the live configuration.
    """

    public_key: str
    allowed_ips: List[AddressRange] = field(default_factory=list)
    preshared_key: Optional[str] = None
    endpoint: Optional[str] = None
    persistent_keepalive: Optional[int] = None

    def advertises(self, prefix: AddressRange) -> bool:
        return prefix in self.allowed_ips

    def owns(self, address: Address) -> bool:
        return any(r.contains(address) for r in self.allowed_ips)

    def remove_allowed_ip(self, prefix: AddressRange) -> None:
        self.allowed_ips = [r for r in self.allowed_ips if r != prefix]

    def append_allowed_ip(self, prefix: AddressRange) -> None:
        self.allowed_ips.append(prefix)

    def list_allowed_ips(self) -> str:
        return format_ranges(self.allowed_ips)


@dataclass
class Device:
    """State tracked for a single monitored WireGuard interface."""

    name: str
    addresses: List[AddressRange] = field(default_factory=list)
    peers: Dict[str, Peer] = field(default_factory=dict)

    # ------------------------------------------------------------------
    # Local addresses
    # ------------------------------------------------------------------
    def sync_addresses(self, observed: Iterable[AddressRange]) -> None:
        """Replace the local address list with ``observed``."""

        fresh = list(dict.fromkeys(observed))
        for prefix in self.addresses:
            if prefix not in fresh:
                LOG.info("%s: removing address: %s", self.name, prefix)
        for prefix in fresh:
            if prefix not in self.addresses:
                LOG.info("%s: adding address: %s", self.name, prefix)
        self.addresses = fresh

    def is_local(self, address: Address) -> bool:
        return any(r.contains(address) for r in self.addresses)

    # ------------------------------------------------------------------
    # Peers
    # ------------------------------------------------------------------
    def merge_peer(self, peer: Peer) -> None:
        """Add or replace a single peer, leaving the others untouched."""

        if not peer.public_key:
            return
        if peer.public_key not in self.peers:
            LOG.info("%s: adding peer: %s", self.name, peer.public_key)
        self.peers[peer.public_key] = peer

    def sync_peers(self, observed: Mapping[str, Peer]) -> None:
        """Replace the peer map wholesale with ``observed``."""

        for key in self.peers:
            if key not in observed:
                LOG.info("%s: removing peer: %s", self.name, key)
        for key in observed:
            if key not in self.peers:
                LOG.info("%s: adding peer: %s", self.name, key)
        self.peers = dict(observed)

    def get_peer(self, public_key: str) -> Optional[Peer]:
        return self.peers.get(public_key)
