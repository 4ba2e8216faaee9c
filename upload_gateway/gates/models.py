"""
Gate Models
===========
Decision types shared by every gate in the request pipeline.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from starlette.datastructures import MutableHeaders
from starlette.requests import Request
from starlette.responses import Response


class RouteClass(str, Enum):
    """Whether a route is exempt from authentication and allowlisting."""
    PUBLIC = "public"
    PROTECTED = "protected"


class RequestOutcome(str, Enum):
    """Terminal classification of a request, used for metrics labels."""
    FORWARDED = "forwarded"
    AUTH_DENIED = "auth_denied"
    IP_DENIED = "ip_denied"
    PREFLIGHT_ANSWERED = "preflight_answered"


class GateAction(str, Enum):
    FORWARD = "forward"
    DENY = "deny"
    RESPOND = "respond"


@dataclass
class GateResult:
    """What a gate decided for one request."""
    action: GateAction
    outcome: Optional[RequestOutcome] = None
    reason: Optional[str] = None
    response: Optional[Response] = None

    @classmethod
    def forward(cls) -> "GateResult":
        return cls(action=GateAction.FORWARD)

    @classmethod
    def deny(cls, outcome: RequestOutcome, reason: str) -> "GateResult":
        return cls(action=GateAction.DENY, outcome=outcome, reason=reason)

    @classmethod
    def respond(cls, response: Response, outcome: RequestOutcome) -> "GateResult":
        return cls(action=GateAction.RESPOND, outcome=outcome, response=response)


class Gate(ABC):
    """
    One stage of the request pipeline.

    ``evaluate`` must not block or read the request body. Gates that need
    to add headers to whatever response is eventually sent override
    ``decorate``.
    """

    name: str = "gate"

    @abstractmethod
    def evaluate(self, request: Request) -> GateResult:
        ...

    def decorate(self, request: Request, headers: MutableHeaders) -> None:
        return None
