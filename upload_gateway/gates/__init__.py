"""
Request Gates
=============
Client identity resolution and the gates that decide whether a request
may reach a handler.
"""

from .models import (
    Gate,
    GateAction,
    GateResult,
    RequestOutcome,
    RouteClass,
)

from .client_ip import resolve_client_ip, client_ip_for, peer_host

from .api_key import APIKeyGate, API_KEY_HEADER

from .ip_allowlist import IPAllowlistGate, is_ip_allowed

from .cors import (
    CORSPolicyEnforcer,
    is_origin_allowed,
    ALLOW_METHODS,
    ALLOW_HEADERS,
    PREFLIGHT_MAX_AGE,
)

from .denial import ABORT_EXTENSION, deny_stealthily, get_abort_capability

__all__ = [
    # Models
    "Gate",
    "GateAction",
    "GateResult",
    "RequestOutcome",
    "RouteClass",
    # Client identity
    "resolve_client_ip",
    "client_ip_for",
    "peer_host",
    # API key
    "APIKeyGate",
    "API_KEY_HEADER",
    # IP allowlist
    "IPAllowlistGate",
    "is_ip_allowed",
    # CORS
    "CORSPolicyEnforcer",
    "is_origin_allowed",
    "ALLOW_METHODS",
    "ALLOW_HEADERS",
    "PREFLIGHT_MAX_AGE",
    # Denial
    "ABORT_EXTENSION",
    "deny_stealthily",
    "get_abort_capability",
]
