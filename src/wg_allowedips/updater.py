"""Apply reconciler decisions to the device model and the live interface."""

from __future__ import annotations

import logging

from .addr import AddressRange
from .exceptions import CommandFailure
from .model import Device, Peer
from .reconciler import RouteDecision
from .wireguard import WireGuardClient

LOG = logging.getLogger(__name__)


class PeerUpdater:
    """Move a route's destination between peers.

    Every change rewrites the peer's complete allowed-ips list.  A failed
    write is not rolled back in memory; the next full peer refresh restores
    the live state.
    """

    def __init__(self, device: Device, wireguard: WireGuardClient, *, dry_run: bool = False) -> None:
        self._device = device
        self._wg = wireguard
        self._dry_run = dry_run

    def apply(self, decision: RouteDecision) -> None:
        destination = decision.route.destination
        if decision.demote is not None:
            self.remove_route(decision.demote, destination)
        if decision.promote is not None:
            self.add_route(decision.promote, destination)

    def remove_route(self, public_key: str, destination: AddressRange) -> None:
        LOG.info("%s: removing route: %s via %s", self._device.name, destination, public_key)
        if self._dry_run:
            return
        peer = self._lookup(public_key)
        peer.remove_allowed_ip(destination)
        self._push(peer)

    def add_route(self, public_key: str, destination: AddressRange) -> None:
        LOG.info("%s: adding route: %s via %s", self._device.name, destination, public_key)
        if self._dry_run:
            return
        peer = self._lookup(public_key)
        peer.append_allowed_ip(destination)
        self._push(peer)

    def _lookup(self, public_key: str) -> Peer:
        peer = self._device.get_peer(public_key)
        if peer is None:
            # ``wg set`` would silently create a new peer for an unknown key
            raise CommandFailure(f"failed to update peer: unknown peer {public_key}")
        return peer

    def _push(self, peer: Peer) -> None:
        self._wg.set_allowed_ips(self._device.name, peer.public_key, peer.allowed_ips)
