"""Reconciliation pass orchestrator.

:class:`AllowedIPsSynchronizer` ties the observers, the device model, the
reconciler and the peer updater together.  One call to :meth:`poll` performs
a full pass: observe routes, refresh the device from the live configuration,
reconcile each route in the order it was observed and apply the decisions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from .addr import AddressRange
from .exceptions import CommandFailure, ConfigInconsistency
from .iproute import IPRouteObserver
from .model import Device, Route
from .reconciler import RouteDecision, reconcile_route
from .updater import PeerUpdater
from .wireguard import WireGuardClient

LOG = logging.getLogger(__name__)

REFRESH_FULL = "full"
REFRESH_MERGE = "merge"
REFRESH_MODES = (REFRESH_FULL, REFRESH_MERGE)


class RouteObserver(Protocol):
    def list_routes(self, device: str, proto: Optional[str] = None) -> List[Route]:
        ...


class AddressObserver(Protocol):
    def list_addresses(self, device: str) -> List[AddressRange]:
        ...


@dataclass(frozen=True)
class SyncOptions:
    proto: Optional[str] = None
    strict: bool = False
    require_local_nexthop: bool = False
    refresh_mode: str = REFRESH_FULL
    dry_run: bool = False

    def __post_init__(self) -> None:
        if self.refresh_mode not in REFRESH_MODES:
            raise ValueError(f"unsupported refresh mode '{self.refresh_mode}'")


class AllowedIPsSynchronizer:
    """Keep the allowed ranges of ``device`` in line with the routing table."""

    def __init__(
        self,
        device: Device,
        *,
        routes: RouteObserver,
        addresses: Optional[AddressObserver] = None,
        wireguard: Optional[WireGuardClient] = None,
        options: Optional[SyncOptions] = None,
    ) -> None:
        self._device = device
        self._routes = routes
        self._addresses = addresses or IPRouteObserver()
        self._wg = wireguard or WireGuardClient()
        self._options = options or SyncOptions()
        self._updater = PeerUpdater(device, self._wg, dry_run=self._options.dry_run)

    @property
    def device(self) -> Device:
        return self._device

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------
    def refresh(self) -> None:
        """Re-read local addresses and peers from the live interface.

        Raises :class:`CommandFailure` when either query fails.
        """

        self._device.sync_addresses(self._addresses.list_addresses(self._device.name))
        peers = self._wg.read_peers(self._device.name)
        if self._options.refresh_mode == REFRESH_MERGE:
            for peer in peers.values():
                self._device.merge_peer(peer)
        else:
            self._device.sync_peers(peers)

    def observe(self) -> List[Route]:
        return self._routes.list_routes(self._device.name, self._options.proto)

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------
    def decide(self, route: Route) -> RouteDecision:
        decision = reconcile_route(self._device.peers, route, strict=self._options.strict)
        for conflict in decision.conflicts:
            LOG.warning("%s: inconsistent configuration: %s", self._device.name, conflict)
        return decision

    def reconcile(self, routes: Sequence[Route]) -> List[RouteDecision]:
        """Reconcile ``routes`` in order and return the decisions applied."""

        applied: List[RouteDecision] = []
        for route in routes:
            if self._options.require_local_nexthop and not self._device.is_local(route.nexthop):
                LOG.debug("%s: skipping %s, next-hop is not local", self._device.name, route)
                continue
            try:
                decision = self.decide(route)
            except ConfigInconsistency as exc:
                LOG.error("%s: skipping route %s: %s", self._device.name, route, exc)
                continue
            if decision.empty:
                continue
            try:
                self._updater.apply(decision)
            except CommandFailure as exc:
                LOG.error("%s: %s", self._device.name, exc)
                continue
            applied.append(decision)
        return applied

    def poll(self) -> bool:
        """Run one reconciliation pass, returning ``False`` if it was skipped."""

        try:
            routes = self.observe()
            self.refresh()
        except CommandFailure as exc:
            LOG.error("%s: %s", self._device.name, exc)
            return False
        self.reconcile(routes)
        return True
