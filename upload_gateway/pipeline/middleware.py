"""
Gate Pipeline Middleware
========================
The driver that runs gates in order for each request.

Global gates (CORS) run first on every request. The request path is then
classified, and the gates for that route class run next. The first gate
that does not forward ends the request:

- DENY: stealth denial (dropped connection, or bare 404)
- RESPOND: the gate's own response is sent (e.g. a CORS preflight)

Gates that already forwarded may add headers to whatever is sent back.
"""

from typing import Dict, List, Mapping, Optional, Sequence

import structlog
from starlette.datastructures import MutableHeaders
from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..gates.denial import deny_stealthily
from ..gates.models import Gate, GateAction, GateResult, RequestOutcome, RouteClass
from ..metrics.middleware import set_request_outcome

logger = structlog.get_logger(__name__)


class GatePipelineMiddleware:
    """Apply the composed gate chains before the application sees a request."""

    def __init__(
        self,
        app: ASGIApp,
        global_gates: Sequence[Gate] = (),
        route_gates: Optional[Mapping[RouteClass, Sequence[Gate]]] = None,
        route_classes: Optional[Mapping[str, RouteClass]] = None,
        default_class: RouteClass = RouteClass.PUBLIC,
    ):
        self.app = app
        self.global_gates: List[Gate] = list(global_gates)
        self.route_gates: Dict[RouteClass, List[Gate]] = {
            route_class: list(gates) for route_class, gates in (route_gates or {}).items()
        }
        self.route_classes: Dict[str, RouteClass] = dict(route_classes or {})
        self.default_class = default_class

    def classify(self, path: str) -> RouteClass:
        # "/upload/" is gated like "/upload".
        normalized = path.rstrip("/") or "/"
        return self.route_classes.get(normalized, self.default_class)

    @staticmethod
    def _evaluate(gates: Sequence[Gate], request: Request, applied: List[Gate]) -> Optional[GateResult]:
        for gate in gates:
            result = gate.evaluate(request)
            if result.action is GateAction.FORWARD:
                applied.append(gate)
                continue
            if result.action is GateAction.RESPOND:
                # A responding gate still decorates its own response.
                applied.append(gate)
            return result
        return None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        applied: List[Gate] = []

        result = self._evaluate(self.global_gates, request, applied)
        if result is None:
            route_class = self.classify(request.url.path)
            result = self._evaluate(self.route_gates.get(route_class, ()), request, applied)

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for gate in applied:
                    gate.decorate(request, headers)
            await send(message)

        if result is None:
            set_request_outcome(scope, RequestOutcome.FORWARDED)
            await self.app(scope, receive, send_wrapper)
            return

        set_request_outcome(scope, result.outcome)

        if result.action is GateAction.RESPOND:
            await result.response(scope, receive, send_wrapper)
            return

        fallback = MutableHeaders()
        for gate in applied:
            gate.decorate(request, fallback)
        await deny_stealthily(scope, send, result.reason or "denied", fallback.raw)
