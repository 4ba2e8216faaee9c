"""
Client Identity
===============
Resolve the caller's address from proxy headers or the transport peer.

Priority: CF-Connecting-IP > X-Real-IP > X-Forwarded-For (first entry) >
transport peer. The result is not validated here; the allowlist gate
decides whether it is a usable IP.
"""

from typing import Mapping, Optional, Tuple, Union

from starlette.requests import HTTPConnection

Peer = Union[str, Tuple[str, int], None]


def _split_host_port(address: str) -> str:
    """Strip a port suffix from ``host:port`` or ``[v6]:port``; raise ValueError otherwise."""
    if address.startswith("["):
        end = address.find("]")
        if end == -1 or address[end + 1:end + 2] != ":":
            raise ValueError(f"missing port in address {address!r}")
        return address[1:end]
    host, sep, _ = address.rpartition(":")
    if not sep:
        raise ValueError(f"missing port in address {address!r}")
    if ":" in host:
        raise ValueError(f"too many colons in address {address!r}")
    return host


def peer_host(peer: Peer) -> str:
    """Host portion of a transport peer, or the raw value if it cannot be split."""
    if peer is None:
        return ""
    if isinstance(peer, tuple):
        return str(peer[0])
    try:
        return _split_host_port(peer)
    except ValueError:
        return peer


def resolve_client_ip(headers: Mapping[str, str], peer: Peer = None) -> str:
    """
    Derive one client IP string for a request.

    Args:
        headers: Request headers (case-insensitive mapping)
        peer: Transport peer, either an ASGI ``(host, port)`` tuple or a
            ``host:port`` string

    Returns:
        The first non-empty candidate; never raises.
    """
    cf_ip = headers.get("cf-connecting-ip")
    if cf_ip:
        return cf_ip

    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip

    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()

    return peer_host(peer)


def client_ip_for(conn: HTTPConnection) -> str:
    """Resolve the client IP of a Starlette request or connection."""
    client = conn.scope.get("client")
    peer: Optional[Tuple[str, int]] = tuple(client) if client else None
    return resolve_client_ip(conn.headers, peer)
