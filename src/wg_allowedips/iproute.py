"""Route and address observation through the iproute2 ``ip`` tool."""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from .addr import AddressRange, parse_address, parse_range
from .command import CommandRunner, Runner, check_output
from .exceptions import MalformedAddress
from .model import Route

LOG = logging.getLogger(__name__)

ROUTE_RE = re.compile(r"(\S+)\s+via\s+(?:inet6?\s+)?(\S+)")
ADDRESS_RE = re.compile(r"inet6?\s+(\S+)")


def parse_routes(text: str) -> List[Route]:
    """Extract ``<dest> via <nexthop>`` pairs from ``ip -o route`` output.

    Lines without a gateway and lines whose tokens are not addresses (such as
    ``default``) are skipped.
    """

    routes: List[Route] = []
    for line in text.splitlines():
        match = ROUTE_RE.search(line)
        if match is None:
            continue
        try:
            destination = parse_range(match.group(1), allow_bare=True)
            nexthop = parse_address(match.group(2))
        except MalformedAddress:
            continue
        routes.append(Route(destination, nexthop))
    return routes


def parse_addresses(text: str, device: str = "") -> List[AddressRange]:
    addresses: List[AddressRange] = []
    for line in text.splitlines():
        match = ADDRESS_RE.search(line)
        if match is None:
            continue
        try:
            addresses.append(parse_range(match.group(1)))
        except MalformedAddress as exc:
            LOG.warning("%s: failed to parse address: %s", device, exc)
    return addresses


class IPRouteObserver:
    """Query kernel routes and interface addresses with ``ip -o``."""

    def __init__(self, runner: Optional[Runner] = None, ip_binary: str = "ip") -> None:
        self._runner = runner or CommandRunner()
        self._ip = ip_binary

    def list_routes(self, device: str, proto: Optional[str] = None) -> List[Route]:
        cmd = [self._ip, "-o", "route", "show", "table", "all", "dev", device]
        if proto:
            cmd.extend(["proto", proto])
        stdout = check_output(self._runner, cmd, f"query routes of {device}")
        routes = parse_routes(stdout)
        LOG.debug("%s: observed %d routes", device, len(routes))
        return routes

    def list_addresses(self, device: str) -> List[AddressRange]:
        cmd = [self._ip, "-o", "addr", "list", "dev", device]
        stdout = check_output(self._runner, cmd, f"query addresses of {device}")
        return parse_addresses(stdout, device)
