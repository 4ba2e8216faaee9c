"""
CORS Policy
===========
Attach cross-origin headers to every response and answer preflights.

An origin outside the policy is a soft denial: the allow-origin header is
omitted and the request still proceeds. The browser enforces the rest.
"""

from typing import Sequence

import structlog
from starlette.datastructures import MutableHeaders
from starlette.requests import Request
from starlette.responses import Response

from .models import Gate, GateResult, RequestOutcome

logger = structlog.get_logger(__name__)

ALLOW_METHODS = "POST, GET, OPTIONS"
ALLOW_HEADERS = "Content-Type, X-API-Key"
PREFLIGHT_MAX_AGE = 3600


def is_origin_allowed(origin: str, allowed_origins: Sequence[str]) -> bool:
    """Wildcard (or empty) policy allows everything; otherwise exact match."""
    if len(allowed_origins) == 0 or (len(allowed_origins) == 1 and allowed_origins[0] == "*"):
        return True
    return origin in allowed_origins


class CORSPolicyEnforcer(Gate):
    """Runs before route dispatch on every request, public or protected."""

    name = "cors"

    def __init__(
        self,
        allowed_origins: Sequence[str],
        max_age: int = PREFLIGHT_MAX_AGE,
    ):
        self.allowed_origins = tuple(allowed_origins)
        self.max_age = max_age

        if "*" in self.allowed_origins:
            logger.warning("cors_wildcard_configured", origins=list(self.allowed_origins))

    def cors_headers(self, request: Request) -> dict:
        headers = {
            "Access-Control-Allow-Methods": ALLOW_METHODS,
            "Access-Control-Allow-Headers": ALLOW_HEADERS,
            "Access-Control-Max-Age": str(self.max_age),
        }
        origin = request.headers.get("origin", "")
        if origin and is_origin_allowed(origin, self.allowed_origins):
            headers["Access-Control-Allow-Origin"] = origin
        elif origin:
            logger.debug("cors_origin_not_allowed", origin=origin, path=request.url.path)
        return headers

    def evaluate(self, request: Request) -> GateResult:
        if request.method == "OPTIONS":
            # Headers are added by decorate() on the way out.
            return GateResult.respond(
                Response(status_code=204),
                RequestOutcome.PREFLIGHT_ANSWERED,
            )
        return GateResult.forward()

    def decorate(self, request: Request, headers: MutableHeaders) -> None:
        for key, value in self.cors_headers(request).items():
            headers[key] = value
