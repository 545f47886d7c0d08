"""
InnoVoice - HTTP Middleware
Request correlation and timing, security headers, body size limit
"""

import time
from typing import Callable, Set
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response, JSONResponse
from starlette.types import ASGIApp

from app.core.logging_config import (
    logger,
    set_request_id,
    set_staff_label,
    generate_request_id,
)


# Served without an access log line
UNLOGGED_PATHS: Set[str] = {"/health", "/", "/favicon.ico", "/docs", "/redoc", "/openapi.json"}

# Polled by every open dashboard; logged at debug level only
POLLING_PATH_SUFFIXES = ("/admin/heartbeat", "/admin/online")

SLOW_REQUEST_MS = 1000


def is_polling_path(path: str) -> bool:
    return path.endswith(POLLING_PATH_SUFFIXES)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an id (reusing an incoming X-Request-ID),
    writes one access line per completed request and exposes the id and
    the elapsed time as response headers.

    The staff label bound by the auth dependency is cleared once the
    response is out so it never leaks into the next request's logs.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        set_request_id(request_id)
        started = time.perf_counter()
        path = request.url.path

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.log_error_with_context(
                exc,
                context=f"{request.method} {path}",
                duration_ms=(time.perf_counter() - started) * 1000,
            )
            self._clear_context()
            raise

        duration_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

        if path not in UNLOGGED_PATHS:
            logger.log_request(
                request.method,
                path,
                response.status_code,
                duration_ms,
                quiet=is_polling_path(path),
                client_ip=request.client.host if request.client else "unknown",
            )
            if duration_ms > SLOW_REQUEST_MS:
                logger.log_performance(f"{request.method} {path}", duration_ms, threshold_ms=SLOW_REQUEST_MS)

        self._clear_context()
        return response

    @staticmethod
    def _clear_context() -> None:
        set_request_id("")
        set_staff_label("")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds the standard hardening headers to every response"""

    HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "strict-origin-when-cross-origin",
    }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers.update(self.HEADERS)
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Rejects bodies whose declared Content-Length exceeds `max_size`.
    Images arrive inline as base64, so this bounds the submission endpoint.
    """

    def __init__(self, app: ASGIApp, max_size: int = 5 * 1024 * 1024):
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        declared = request.headers.get("content-length", "")

        if declared.isdigit() and int(declared) > self.max_size:
            logger.warning(
                f"Rejected {request.url.path}: body of {declared} bytes exceeds {self.max_size}",
                extra={"event_type": "request_too_large", "content_length": int(declared), "max_size": self.max_size},
            )
            return JSONResponse(
                status_code=413,
                content={"message": f"Request body too large (limit {self.max_size} bytes)"},
            )

        return await call_next(request)


__all__ = [
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
    "RequestSizeLimitMiddleware",
    "UNLOGGED_PATHS",
]
