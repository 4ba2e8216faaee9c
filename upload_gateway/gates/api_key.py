"""
API Key Gate
============
Require the shared secret in ``X-API-Key`` on protected routes.

A failed check is a stealth denial, never a 401/403: a caller without the
key must not be able to tell a protected route from a missing one.
"""

import hmac

import structlog
from starlette.requests import Request

from .client_ip import client_ip_for
from .models import Gate, GateResult, RequestOutcome

logger = structlog.get_logger(__name__)

API_KEY_HEADER = "X-API-Key"


class APIKeyGate(Gate):
    """
    Compare the request's API key with the configured secret.

    Only installed when a secret is configured; an empty secret means
    authentication is disabled and the composer leaves this gate out.
    """

    name = "api_key"

    def __init__(self, api_key: str, header_name: str = API_KEY_HEADER):
        if not api_key:
            raise ValueError("APIKeyGate requires a non-empty secret")
        self._secret = api_key.encode("utf-8")
        self.header_name = header_name

    def _matches(self, provided: str) -> bool:
        if not provided:
            return False
        return hmac.compare_digest(provided.encode("utf-8"), self._secret)

    def evaluate(self, request: Request) -> GateResult:
        provided = request.headers.get(self.header_name, "")

        if not provided:
            reason = "missing_api_key"
        elif not self._matches(provided):
            reason = "invalid_api_key"
        else:
            logger.debug("api_key_gate_passed", path=request.url.path)
            return GateResult.forward()

        logger.warning(
            "api_key_gate_blocked",
            path=request.url.path,
            method=request.method,
            client_ip=client_ip_for(request),
            reason=reason,
        )
        return GateResult.deny(RequestOutcome.AUTH_DENIED, reason)
