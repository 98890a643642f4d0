"""Netlink route observer backed by :mod:`pyroute2`.

Next-hops are taken from ``RTA_GATEWAY`` or, for routes whose gateway
belongs to the other address family, from ``RTA_VIA``.
"""

from __future__ import annotations

import logging
import socket
from typing import List, Optional

import pyroute2
from pyroute2.netlink.rtnl import rt_proto

from .addr import AddressRange, parse_address
from .exceptions import CommandFailure, MalformedAddress
from .model import Route

LOG = logging.getLogger(__name__)


def resolve_proto(proto: str) -> int:
    """Map a protocol name (``bird``, ``static``...) or number to its id."""

    value = proto.strip().lower()
    if value.isdigit():
        return int(value)
    try:
        return rt_proto[value]
    except KeyError:
        raise ValueError(f"unknown route protocol '{proto}'") from None


def _nexthop(msg) -> Optional[str]:
    gateway = msg.get_attr("RTA_GATEWAY")
    if gateway:
        return gateway
    via = msg.get_attr("RTA_VIA")
    if via:
        return via.get("addr")
    return None


class NetlinkRouteObserver:
    """Read routes of ``device`` directly from the kernel over netlink."""

    def list_routes(self, device: str, proto: Optional[str] = None) -> List[Route]:
        filters = {}
        if proto:
            try:
                filters["proto"] = resolve_proto(proto)
            except ValueError as exc:
                raise CommandFailure(f"failed to query routes of {device}: {exc}") from None

        routes: List[Route] = []
        try:
            with pyroute2.IPRoute() as ipr:
                links = ipr.link_lookup(ifname=device)
                if not links:
                    raise CommandFailure(f"failed to query routes: no such device {device}")
                for family in (socket.AF_INET, socket.AF_INET6):
                    for msg in ipr.get_routes(family=family, oif=links[0], **filters):
                        route = self._to_route(msg)
                        if route is not None:
                            routes.append(route)
        except pyroute2.NetlinkError as exc:
            raise CommandFailure(
                f"failed to query routes of {device}: {exc}", stderr=str(exc)
            ) from exc

        LOG.debug("%s: observed %d routes over netlink", device, len(routes))
        return routes

    @staticmethod
    def _to_route(msg) -> Optional[Route]:
        dst = msg.get_attr("RTA_DST")
        gateway = _nexthop(msg)
        if not dst or not gateway:
            return None
        try:
            destination = AddressRange(parse_address(dst), int(msg.get("dst_len")))
            nexthop = parse_address(gateway)
        except MalformedAddress:
            return None
        return Route(destination, nexthop)
