"""
Stealth Denial
==============
End a request without confirming that the route exists.

If the server advertises the connection-abort extension, the connection is
closed with no status line at all. Otherwise a bare 404 with an empty body
is sent, which is indistinguishable from an unknown route.
"""

from typing import Callable, Optional

import structlog
from starlette.types import Scope, Send

logger = structlog.get_logger(__name__)

ABORT_EXTENSION = "upload_gateway.connection.abort"


def get_abort_capability(scope: Scope) -> Optional[Callable[[], None]]:
    """Return the server's connection-abort callable, if it provides one."""
    extensions = scope.get("extensions") or {}
    abort = extensions.get(ABORT_EXTENSION)
    return abort if callable(abort) else None


async def send_not_found(send: Send, headers: Optional[list] = None) -> None:
    await send({
        "type": "http.response.start",
        "status": 404,
        "headers": [(b"content-length", b"0"), *(headers or [])],
    })
    await send({"type": "http.response.body", "body": b""})


async def deny_stealthily(
    scope: Scope,
    send: Send,
    reason: str,
    fallback_headers: Optional[list] = None,
) -> bool:
    """
    Deny the request in scope.

    Args:
        scope: ASGI scope of the denied request
        send: ASGI send callable
        reason: Why the request was denied (logged only)
        fallback_headers: Raw headers to include on the 404 fallback

    Returns:
        True if the connection was dropped, False if a 404 was sent.
    """
    abort = get_abort_capability(scope)
    if abort is not None:
        try:
            abort()
        except Exception as e:
            logger.warning("connection_abort_failed", reason=reason, error=str(e))
        else:
            logger.warning("stealth_denial", reason=reason, path=scope.get("path"), mode="dropped")
            return True

    logger.warning("stealth_denial", reason=reason, path=scope.get("path"), mode="not_found")
    await send_not_found(send, fallback_headers)
    return False
