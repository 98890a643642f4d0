"""Ownership resolution between observed routes and peer allowed ranges.

For a route ``D via N`` a peer *owns* the route when one of its allowed
ranges contains ``N``.  The reconciler makes sure ``D`` is listed, by exact
equality, on the owner and on no other peer:

* a peer that lists ``D`` but does not own ``N`` is *demoted*;
* a peer that owns ``N`` but does not list ``D`` yet is *promoted*.

Peers are scanned in ascending public-key order.  Should two peers qualify
for the same role the lowest key is acted upon and the remaining candidates
are reported as a :class:`~wg_allowedips.exceptions.ConfigInconsistency`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Tuple

from .exceptions import ConfigInconsistency
from .model import Peer, Route

DEMOTE = "demote"
PROMOTE = "promote"


@dataclass(frozen=True)
class RouteDecision:
    """Changes required for a single route."""

    route: Route
    demote: Optional[str] = None
    promote: Optional[str] = None
    conflicts: Tuple[ConfigInconsistency, ...] = field(default=(), compare=False)

    @property
    def empty(self) -> bool:
        return self.demote is None and self.promote is None


def _pick(role: str, route: Route, keys: List[str], strict: bool, conflicts: list) -> Optional[str]:
    if not keys:
        return None
    if len(keys) > 1:
        conflict = ConfigInconsistency(role, str(route.destination), keys)
        if strict:
            raise conflict
        conflicts.append(conflict)
    return keys[0]


def reconcile_route(
    peers: Mapping[str, Peer], route: Route, *, strict: bool = False
) -> RouteDecision:
    """Compute the demote/promote decision for ``route``.

    Raises :class:`ConfigInconsistency` when ``strict`` is set and more than
    one peer qualifies for the same role.
    """

    demote: List[str] = []
    promote: List[str] = []

    for key in sorted(peers):
        peer = peers[key]
        advertises = peer.advertises(route.destination)
        owns = peer.owns(route.nexthop)
        if advertises and not owns:
            demote.append(key)
        if owns and not advertises:
            promote.append(key)

    conflicts: List[ConfigInconsistency] = []
    return RouteDecision(
        route=route,
        demote=_pick(DEMOTE, route, demote, strict, conflicts),
        promote=_pick(PROMOTE, route, promote, strict, conflicts),
        conflicts=tuple(conflicts),
    )
