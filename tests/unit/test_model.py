import logging

from wg_allowedips.addr import parse_address, parse_range
from wg_allowedips.model import Device, Peer


def make_peer(key, *ranges):
    return Peer(public_key=key, allowed_ips=[parse_range(r) for r in ranges])


def test_sync_peers_replaces_map_and_logs(caplog):
    device = Device(name="wg0", peers={"old=": make_peer("old="), "kept=": make_peer("kept=")})
    fresh = {"kept=": make_peer("kept=", "10.0.1.0/24"), "new=": make_peer("new=")}

    with caplog.at_level(logging.INFO):
        device.sync_peers(fresh)

    assert set(device.peers) == {"kept=", "new="}
    assert device.peers["kept="].list_allowed_ips() == "10.0.1.0/24"
    assert "wg0: removing peer: old=" in caplog.text
    assert "wg0: adding peer: new=" in caplog.text
    assert "adding peer: kept=" not in caplog.text


def test_merge_peer_leaves_others(caplog):
    device = Device(name="wg0", peers={"a=": make_peer("a=")})

    with caplog.at_level(logging.INFO):
        device.merge_peer(make_peer("b=", "10.0.2.0/24"))
        device.merge_peer(make_peer("a=", "10.0.1.0/24"))
        device.merge_peer(make_peer(""))

    assert set(device.peers) == {"a=", "b="}
    assert device.peers["a="].list_allowed_ips() == "10.0.1.0/24"
    assert caplog.text.count("adding peer") == 1


def test_sync_addresses(caplog):
    device = Device(name="wg0", addresses=[parse_range("10.0.0.1/24")])

    with caplog.at_level(logging.INFO):
        device.sync_addresses([parse_range("10.0.1.2/24"), parse_range("10.0.1.2/24")])

    assert device.addresses == [parse_range("10.0.1.2/24")]
    assert "wg0: removing address: 10.0.0.1/24" in caplog.text
    assert "wg0: adding address: 10.0.1.2/24" in caplog.text
    assert device.is_local(parse_address("10.0.1.200"))
    assert not device.is_local(parse_address("10.0.0.5"))


def test_remove_allowed_ip_by_value():
    peer = make_peer("a=", "10.0.1.0/24", "10.0.2.0/24", "10.0.1.0/24")

    peer.remove_allowed_ip(parse_range("10.0.1.0/24"))

    assert peer.list_allowed_ips() == "10.0.2.0/24"


def test_append_allowed_ip_keeps_order():
    peer = make_peer("a=", "10.0.2.0/24")

    peer.append_allowed_ip(parse_range("10.0.1.0/24"))

    assert peer.list_allowed_ips() == "10.0.2.0/24,10.0.1.0/24"
    assert peer.advertises(parse_range("10.0.1.0/24"))
    assert peer.owns(parse_address("10.0.2.9"))
