"""ICE (STUN/TURN) server URIs returned to web clients for NAT traversal."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl

DEFAULT_PORTS: Dict[str, int] = {
    "stun": 3478,
    "turn": 3478,
    "stuns": 5349,
    "turns": 5349,
}
TRANSPORTS = ("udp", "tcp")


@dataclass(frozen=True)
class IceServer:
    scheme: str
    host: str
    port: int
    username: Optional[str] = None
    credential: Optional[str] = None
    transport: Optional[str] = None

    @property
    def is_turn(self) -> bool:
        return self.scheme in ("turn", "turns")

    @property
    def url(self) -> str:
        """URI without credentials, as browsers expect it in ``urls``."""
        host = f"[{self.host}]" if ":" in self.host else self.host
        url = f"{self.scheme}:{host}:{self.port}"
        if self.transport:
            url += f"?transport={self.transport}"
        return url

    def to_rtc(self) -> Dict[str, Any]:
        """Return the RTCIceServer dictionary for this server."""
        entry: Dict[str, Any] = {"urls": [self.url]}
        if self.username is not None:
            entry["username"] = self.username
            entry["credential"] = self.credential or ""
        return entry


def parse_ice_server(uri: str) -> IceServer:
    """Parse ``scheme:[user[:credential]@]host[:port][?transport=...]``."""
    if not isinstance(uri, str) or not uri.strip():
        raise ValueError("ICE server URI must be a non-empty string")
    scheme, sep, rest = uri.strip().partition(":")
    scheme = scheme.lower()
    if not sep or scheme not in DEFAULT_PORTS:
        allowed = ", ".join(sorted(DEFAULT_PORTS))
        raise ValueError(f"ICE server URI {uri!r} must start with one of: {allowed}")

    rest, _, query = rest.partition("?")
    userinfo, at, hostport = rest.rpartition("@")
    username: Optional[str] = None
    credential: Optional[str] = None
    if at:
        if scheme in ("stun", "stuns"):
            raise ValueError(f"STUN server URI {uri!r} must not carry credentials")
        username, colon, cred = userinfo.partition(":")
        if not username:
            raise ValueError(f"ICE server URI {uri!r} has an empty username")
        credential = cred if colon else None

    host, port = _split_host_port(hostport, uri)
    if port is None:
        port = DEFAULT_PORTS[scheme]

    transport = _parse_transport(query, uri)
    return IceServer(
        scheme=scheme,
        host=host,
        port=port,
        username=username,
        credential=credential,
        transport=transport,
    )


def _split_host_port(hostport: str, uri: str) -> tuple[str, Optional[int]]:
    port_text = ""
    if hostport.startswith("["):
        end = hostport.find("]")
        if end < 0:
            raise ValueError(f"ICE server URI {uri!r} has an unterminated IPv6 host")
        host = hostport[1:end]
        tail = hostport[end + 1 :]
        if tail:
            if not tail.startswith(":"):
                raise ValueError(f"ICE server URI {uri!r} has garbage after host")
            port_text = tail[1:]
            if not port_text:
                raise ValueError(f"ICE server URI {uri!r} has an empty port")
    elif ":" in hostport:
        host, _, port_text = hostport.rpartition(":")
        if not port_text:
            raise ValueError(f"ICE server URI {uri!r} has an empty port")
    else:
        host = hostport

    if not host:
        raise ValueError(f"ICE server URI {uri!r} has an empty host")
    if not port_text:
        return host, None
    if not port_text.isdigit() or not 0 < int(port_text) <= 65535:
        raise ValueError(f"ICE server URI {uri!r} has an invalid port {port_text!r}")
    return host, int(port_text)


def _parse_transport(query: str, uri: str) -> Optional[str]:
    if not query:
        return None
    try:
        pairs = parse_qsl(query, keep_blank_values=True, strict_parsing=True)
    except ValueError as exc:
        raise ValueError(f"ICE server URI {uri!r} has a malformed query") from exc
    transport: Optional[str] = None
    for key, value in pairs:
        if key != "transport":
            raise ValueError(f"ICE server URI {uri!r} has unknown parameter {key!r}")
        if value.lower() not in TRANSPORTS:
            raise ValueError(
                f"ICE server URI {uri!r} has unknown transport {value!r}"
            )
        transport = value.lower()
    return transport


__all__ = ["DEFAULT_PORTS", "IceServer", "parse_ice_server"]
