"""
IP Allowlist Gate
=================
Restrict protected routes to configured addresses and CIDR blocks.
"""

import ipaddress
from typing import Iterable, List, Sequence, Tuple, Union

import structlog
from starlette.requests import Request

from .client_ip import client_ip_for
from .models import Gate, GateResult, RequestOutcome

logger = structlog.get_logger(__name__)

Address = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
Network = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


def _parse_entries(
    entries: Iterable[str],
    log_invalid: bool = True,
) -> List[Tuple[str, Union[str, Network]]]:
    """
    Split allowlist entries into CIDR networks and literal addresses.

    Entries containing ``/`` that do not parse as CIDR are skipped so a
    single typo does not lock everyone out.
    """
    parsed: List[Tuple[str, Union[str, Network]]] = []
    for entry in entries:
        if "/" in entry:
            try:
                parsed.append(("cidr", ipaddress.ip_network(entry, strict=False)))
            except ValueError as e:
                if log_invalid:
                    logger.warning("allowlist_entry_invalid", entry=entry, error=str(e))
        else:
            parsed.append(("exact", entry))
    return parsed


def _in_network(address: Address, network: Network) -> bool:
    if address.version == network.version:
        return address in network
    # IPv4-mapped IPv6 clients (::ffff:a.b.c.d) match IPv4 blocks.
    if address.version == 6 and address.ipv4_mapped is not None:
        return address.ipv4_mapped in network
    return False


def _matches(client_ip: str, entries: Sequence[Tuple[str, Union[str, Network]]]) -> bool:
    try:
        address = ipaddress.ip_address(client_ip)
    except ValueError:
        return False

    for kind, entry in entries:
        if kind == "cidr":
            if _in_network(address, entry):
                return True
        elif client_ip == entry:
            return True
    return False


def is_ip_allowed(client_ip: str, allowed_ips: Sequence[str]) -> bool:
    """
    Check a client IP against allowlist entries (literal IPs or CIDR blocks).

    One-off check; malformed entries are skipped silently. Long-lived
    callers should build an IPAllowlistGate, which parses once.
    """
    return _matches(client_ip, _parse_entries(allowed_ips, log_invalid=False))


class IPAllowlistGate(Gate):
    """
    Allow the request only if the resolved client IP matches an entry.

    Literal entries are compared as strings; entries with ``/`` are CIDR
    membership tests. A client IP that does not parse is denied.
    """

    name = "ip_allowlist"

    def __init__(self, allowed_ips: Sequence[str]):
        self.allowed_ips = tuple(allowed_ips)
        self._entries = _parse_entries(self.allowed_ips)

    def allows(self, client_ip: str) -> bool:
        return _matches(client_ip, self._entries)

    def evaluate(self, request: Request) -> GateResult:
        client_ip = client_ip_for(request)
        if self.allows(client_ip):
            logger.debug("ip_allowlist_passed", path=request.url.path, client_ip=client_ip)
            return GateResult.forward()

        logger.warning(
            "ip_allowlist_blocked",
            path=request.url.path,
            method=request.method,
            client_ip=client_ip,
        )
        return GateResult.deny(RequestOutcome.IP_DENIED, "ip_not_allowed")
