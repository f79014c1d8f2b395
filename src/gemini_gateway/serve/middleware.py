"""Request logging, body size cap and the last-resort error handler."""
from __future__ import annotations
import logging

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from gemini_gateway.common.schema import ErrorBody, now_iso

LOGGER = logging.getLogger("gemini_gateway.serve.requests")


def unexpected_error() -> JSONResponse:
    """Generic 500; never carries details of what went wrong."""
    body = ErrorBody.build("Internal server error", "An unexpected error occurred")
    return JSONResponse(status_code=500, content=body.model_dump())


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        LOGGER.info("%s - %s %s", now_iso(), request.method, request.url.path)
        return await call_next(request)


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """Turns any exception escaping the app into the generic 500."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            LOGGER.exception("Unhandled error: %s", e)
            return unexpected_error()


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Rejects requests whose declared Content-Length exceeds ``max_bytes``.

    Bodies without a Content-Length (chunked) are counted while being read.
    """

    def __init__(self, app: ASGIApp, max_bytes: int) -> None:
        super().__init__(app)
        self.max_bytes = max_bytes

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        declared = request.headers.get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > self.max_bytes:
            LOGGER.error(
                "Request body too large: %s %s declares %s bytes (limit %d bytes)",
                request.method, request.url.path, declared, self.max_bytes,
            )
            return unexpected_error()
        return await call_next(request)
