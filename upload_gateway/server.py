"""
Server Runtime
==============
Run the gateway under uvicorn with connection-abort support.

uvicorn's h11 protocol is subclassed so each request scope carries the
``upload_gateway.connection.abort`` extension. Stealth denials call it to
close the socket without writing a status line.
"""

import sys
from typing import Callable

import structlog
import uvicorn
from starlette.types import ASGIApp, Receive, Scope, Send
from uvicorn.protocols.http.h11_impl import H11Protocol

from .app import create_app
from .config import GatewaySettings
from .errors import ConfigurationError
from .gates.denial import ABORT_EXTENSION
from .log import setup_logging

logger = structlog.get_logger(__name__)

KEEP_ALIVE_TIMEOUT_SECONDS = 60
GRACEFUL_SHUTDOWN_SECONDS = 10


def with_abort_extension(app: ASGIApp, abort: Callable[[], None]) -> ASGIApp:
    """Wrap an ASGI app so HTTP scopes advertise ``abort`` as the abort extension."""

    async def wrapped(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            extensions = dict(scope.get("extensions") or {})
            extensions[ABORT_EXTENSION] = abort
            scope["extensions"] = extensions
        await app(scope, receive, send)

    return wrapped


class AbortableH11Protocol(H11Protocol):
    """h11 protocol whose requests can be dropped without any response."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.app = with_abort_extension(self.app, self.abort_connection)

    def abort_connection(self) -> None:
        # Marking the cycle disconnected stops uvicorn from sending its
        # own 500 when the app returns without a response.
        if self.cycle is not None:
            self.cycle.disconnected = True
        self.transport.close()


def server_config(app: ASGIApp, host: str, port: int) -> uvicorn.Config:
    """uvicorn settings shared by every gateway process: abortable h11, fixed timeouts."""
    return uvicorn.Config(
        app,
        host=host,
        port=port,
        http=AbortableH11Protocol,
        timeout_keep_alive=KEEP_ALIVE_TIMEOUT_SECONDS,
        timeout_graceful_shutdown=GRACEFUL_SHUTDOWN_SECONDS,
        log_config=None,
        access_log=False,
        server_header=False,
    )


def create_server(settings: GatewaySettings) -> uvicorn.Server:
    app = create_app(settings)
    return uvicorn.Server(server_config(app, settings.host, settings.port))


def main() -> None:
    """Entry point: load settings, configure logging, serve until signalled."""
    settings = GatewaySettings.from_env()
    setup_logging(settings.service_name, settings.log_level, settings.log_json)

    try:
        server = create_server(settings)
    except ConfigurationError as e:
        logger.critical("startup_failed", error=e.message)
        sys.exit(1)

    logger.info(
        "server_starting",
        host=settings.host,
        port=settings.port,
        bucket=settings.primary_bucket,
        secondary_bucket=settings.secondary_bucket or None,
        authentication="enabled" if settings.api_key else "disabled",
    )
    server.run()
    logger.info("server_stopped")


if __name__ == "__main__":
    main()
