import pytest

from sapi.config.ice import IceServer, parse_ice_server
from sapi.config.schema import IceConfig


def test_default_turn_server_carries_credentials() -> None:
    server = parse_ice_server("turn:access_token:qwerty@127.0.0.1:3478")

    assert server == IceServer(
        scheme="turn",
        host="127.0.0.1",
        port=3478,
        username="access_token",
        credential="qwerty",
    )
    assert server.is_turn
    assert server.to_rtc() == {
        "urls": ["turn:127.0.0.1:3478"],
        "username": "access_token",
        "credential": "qwerty",
    }


def test_stun_server_gets_default_port_and_no_credentials() -> None:
    server = parse_ice_server("STUN:stun.example.org")

    assert server.scheme == "stun"
    assert server.port == 3478
    assert not server.is_turn
    assert server.to_rtc() == {"urls": ["stun:stun.example.org:3478"]}


def test_turns_server_with_ipv6_host_and_transport() -> None:
    server = parse_ice_server("turns:user:pass@[2001:db8::1]?transport=TCP")

    assert server.host == "2001:db8::1"
    assert server.port == 5349
    assert server.transport == "tcp"
    assert server.url == "turns:[2001:db8::1]:5349?transport=tcp"


def test_turn_username_without_credential() -> None:
    server = parse_ice_server("turn:user@turn.example.org:3479")

    assert server.username == "user"
    assert server.credential is None
    assert server.to_rtc()["credential"] == ""


@pytest.mark.parametrize(
    "uri",
    [
        "",
        "http://turn.example.org",
        "turn:",
        "turn:@host",
        "stun:user:pass@stun.example.org",
        "turn:host:99999",
        "turn:host:",
        "turn:host:abc",
        "turn:[::1",
        "turn:host?transport=sctp",
        "turn:host?foo=bar",
    ],
)
def test_invalid_ice_uris_are_rejected(uri: str) -> None:
    with pytest.raises(ValueError):
        parse_ice_server(uri)


def test_ice_config_builds_rtc_server_list() -> None:
    ice = IceConfig(servers=["stun:stun.example.org", "turn:u:p@turn.example.org"])

    assert ice.rtc_servers() == [
        {"urls": ["stun:stun.example.org:3478"]},
        {"urls": ["turn:turn.example.org:3478"], "username": "u", "credential": "p"},
    ]
