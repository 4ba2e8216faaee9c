"""
Metrics Middleware
==================
Outermost ASGI layer: times every request and counts it by final status.

Requests to the metrics exposition path are passed straight through so
scraping does not count itself.
"""

import time
from typing import Optional

import structlog
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..gates.client_ip import resolve_client_ip
from ..gates.models import RequestOutcome
from .recorder import NO_RESPONSE_STATUS, MetricsRecorder

logger = structlog.get_logger(__name__)

OUTCOME_STATE_KEY = "gate_outcome"


def set_request_outcome(scope: Scope, outcome: RequestOutcome) -> None:
    """Record the terminal gate outcome for the metrics layer to read."""
    scope.setdefault("state", {})[OUTCOME_STATE_KEY] = outcome


def get_request_outcome(scope: Scope) -> Optional[RequestOutcome]:
    return (scope.get("state") or {}).get(OUTCOME_STATE_KEY)


class MetricsMiddleware:
    """Records latency, request counts and gate outcomes for every HTTP request."""

    def __init__(
        self,
        app: ASGIApp,
        recorder: MetricsRecorder,
        exclude_paths: tuple = ("/metrics",),
    ):
        self.app = app
        self.recorder = recorder
        self.exclude_paths = set(exclude_paths)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "")
        path = scope.get("path", "")
        headers = Headers(scope=scope)
        hostname = headers.get("host", "")
        client_ip = resolve_client_ip(headers, tuple(scope["client"]) if scope.get("client") else None)

        status_code: Optional[int] = None

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start" and status_code is None:
                status_code = message["status"]
            await send(message)

        start = time.perf_counter()
        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            # The server turns an unhandled error into a 500.
            if status_code is None:
                status_code = 500
            raise
        finally:
            self.recorder.observe_duration(method, path, time.perf_counter() - start)

            final_status = status_code if status_code is not None else NO_RESPONSE_STATUS
            self.recorder.record_request(method, path, final_status, hostname, client_ip)

            outcome = get_request_outcome(scope)
            if outcome is None and status_code is not None:
                outcome = RequestOutcome.FORWARDED
            if outcome is not None:
                self.recorder.record_outcome(outcome)
