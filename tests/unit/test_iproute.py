import pytest

from wg_allowedips.addr import parse_address, parse_range
from wg_allowedips.exceptions import CommandFailure
from wg_allowedips.iproute import IPRouteObserver, parse_addresses, parse_routes
from wg_allowedips.model import Route

ROUTES = """\
default via 10.0.1.1 dev wg0 proto bird metric 32
10.0.2.0/24 via 10.0.1.5 dev wg0 proto bird metric 32
10.0.1.0/24 dev wg0 proto kernel scope link src 10.0.1.2
192.0.2.9 via 10.0.9.1 dev wg0 table 100 proto bird
10.0.3.0/24 nexthop via 10.0.1.6 dev wg0 weight 1
fd00:2::/64 via fd00:1::5 dev wg0 proto bird metric 1024 pref medium
10.0.4.0/24 via inet6 fd00:1::7 dev wg0 proto bird
10.0.5.0/24 via not-an-address dev wg0
"""


def test_parse_routes_skips_unmatched_lines():
    routes = parse_routes(ROUTES)

    assert routes == [
        Route(parse_range("10.0.2.0/24"), parse_address("10.0.1.5")),
        Route(parse_range("192.0.2.9/32"), parse_address("10.0.9.1")),
        Route(parse_range("fd00:2::/64"), parse_address("fd00:1::5")),
        Route(parse_range("10.0.4.0/24"), parse_address("fd00:1::7")),
    ]


def test_parse_addresses():
    output = (
        "4: wg0    inet 10.0.1.2/24 scope global wg0\\       valid_lft forever\n"
        "4: wg0    inet6 fd00:1::2/64 scope global \\       valid_lft forever\n"
        "4: wg0    inet6 fe80::1/999 scope link\n"
    )

    addresses = parse_addresses(output, "wg0")

    assert addresses == [parse_range("10.0.1.2/24"), parse_range("fd00:1::2/64")]


def test_observer_builds_route_query(host):
    host.routes = "10.0.2.0/24 via 10.0.1.5 dev wg0 proto bird"
    observer = IPRouteObserver(host)

    routes = observer.list_routes("wg0", "bird")

    assert host.calls == [
        ["ip", "-o", "route", "show", "table", "all", "dev", "wg0", "proto", "bird"]
    ]
    assert [str(r) for r in routes] == ["10.0.2.0/24 via 10.0.1.5"]


def test_observer_without_proto_filter(host):
    IPRouteObserver(host, ip_binary="ip").list_routes("wg0")

    assert host.calls[0][-2:] == ["dev", "wg0"]


def test_observer_reports_query_failure(host):
    host.failures["route"] = 'Cannot find device "wg9"'

    with pytest.raises(CommandFailure) as excinfo:
        IPRouteObserver(host).list_routes("wg9")

    assert 'cannot find device "wg9"' in str(excinfo.value)
    assert excinfo.value.returncode == 1


def test_observer_lists_addresses(host):
    host.addresses = "4: wg0    inet 10.0.1.2/24 scope global wg0"

    addresses = IPRouteObserver(host).list_addresses("wg0")

    assert addresses == [parse_range("10.0.1.2/24")]
    assert host.calls == [["ip", "-o", "addr", "list", "dev", "wg0"]]
