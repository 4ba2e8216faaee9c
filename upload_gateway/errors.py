"""
Gateway Errors
==============
Exceptions raised by the gateway and the FastAPI handlers that render them.

Gate denials are deliberately NOT exceptions: they never produce an error
body. Only handler-level failures are reported to the caller.
"""

from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from .schemas import UploadResponse

logger = structlog.get_logger(__name__)


class GatewayError(Exception):
    """Base exception for the upload gateway."""
    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ConfigurationError(GatewayError):
    """Raised at startup when the service cannot begin serving."""


class MalformedRequestError(GatewayError):
    """Raised when a request body is unusable. The message is shown to the caller."""
    status_code = 400


class UpstreamStorageError(GatewayError):
    """
    Raised when the storage backend fails.

    ``message`` is the generic text returned to the caller; the underlying
    exception is kept on ``cause`` for logging only.
    """
    status_code = 500

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=UploadResponse(success=False, error=message).to_content(),
    )


async def _malformed_request_handler(request: Request, exc: MalformedRequestError) -> JSONResponse:
    logger.info(
        "malformed_request",
        path=request.url.path,
        method=request.method,
        error=exc.message,
    )
    return error_response(exc.message, exc.status_code)


async def _upstream_storage_handler(request: Request, exc: UpstreamStorageError) -> JSONResponse:
    logger.error(
        "storage_operation_failed",
        path=request.url.path,
        error=str(exc.cause) if exc.cause else exc.message,
        error_type=type(exc.cause).__name__ if exc.cause else None,
    )
    return error_response(exc.message, exc.status_code)


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    # Unknown routes look exactly like a stealth denial: bare 404, no body.
    if exc.status_code == 404:
        return Response(status_code=404)
    return await http_exception_handler(request, exc)


def register_error_handlers(app: FastAPI) -> None:
    """Attach the request-time error handlers to an application."""
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(MalformedRequestError, _malformed_request_handler)
    app.add_exception_handler(UpstreamStorageError, _upstream_storage_handler)
