"""Address and CIDR range primitives.

``ipaddress`` networks normalise away host bits, while WireGuard and
iproute2 keep whatever the operator wrote (``10.0.0.1/24`` is a valid
interface address).  :class:`AddressRange` therefore keeps the address and
the prefix length side by side and only builds a network for containment
checks.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from functools import cached_property
from typing import Iterable, List, Tuple, Union

from .exceptions import MalformedAddress

Address = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

_MAX_PREFIX = {4: 32, 6: 128}


def parse_address(text: str) -> Address:
    value = text.strip()
    if not value:
        raise MalformedAddress(text, "empty value")
    try:
        return ipaddress.ip_address(value)
    except ValueError as exc:
        raise MalformedAddress(text, str(exc)) from None


def normalize_prefix(value: str) -> str:
    """Append the host prefix length to a bare address."""

    value = value.strip()
    if not value:
        raise MalformedAddress(value, "empty value")
    if "/" in value:
        return value
    ip = parse_address(value)
    if ip.version == 4:
        return f"{value}/32"
    return f"{value}/128"


@dataclass(frozen=True)
class AddressRange:
    """A family tagged ``address/prefixlen`` pair."""

    address: Address
    prefixlen: int

    def __post_init__(self) -> None:
        limit = _MAX_PREFIX[self.address.version]
        if not 0 <= self.prefixlen <= limit:
            raise MalformedAddress(
                f"{self.address}/{self.prefixlen}",
                f"prefix length must be within 0-{limit}",
            )

    @property
    def version(self) -> int:
        return self.address.version

    @cached_property
    def network(self) -> Union[ipaddress.IPv4Network, ipaddress.IPv6Network]:
        return ipaddress.ip_network(f"{self.address}/{self.prefixlen}", strict=False)

    def contains(self, address: Address) -> bool:
        if address.version != self.version:
            return False
        return address in self.network

    def __str__(self) -> str:
        return f"{self.address}/{self.prefixlen}"


def parse_range(text: str, *, allow_bare: bool = False) -> AddressRange:
    """Parse ``text`` as ``address/prefixlen``.

    With ``allow_bare`` a missing prefix length defaults to the host mask of
    the address family.
    """

    value = text.strip()
    if allow_bare:
        value = normalize_prefix(value)
    address_text, sep, length_text = value.partition("/")
    if not sep:
        raise MalformedAddress(text, "missing prefix length")
    if not (length_text.isascii() and length_text.isdigit()):
        raise MalformedAddress(text, "invalid prefix length")
    address = parse_address(address_text)
    if address.version == 6 and address.scope_id:
        raise MalformedAddress(text, "scoped addresses cannot form a range")
    return AddressRange(address, int(length_text))


def parse_range_list(text: str) -> Tuple[List[AddressRange], List[str]]:
    """Split a comma separated ``AllowedIPs`` value.

    Returns the parsed ranges in order together with the tokens that could
    not be parsed.
    """

    ranges: List[AddressRange] = []
    rejected: List[str] = []
    for token in text.split(","):
        token = token.strip()
        if not token:
            continue
        try:
            ranges.append(parse_range(token))
        except MalformedAddress:
            rejected.append(token)
    return ranges, rejected


def format_ranges(ranges: Iterable[AddressRange]) -> str:
    return ",".join(str(r) for r in ranges)
