"""
Core middleware registration for the FastAPI application.

Request tracking, timing and security headers.
"""
from __future__ import annotations

import time
import uuid
from typing import Callable

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from campus_exit.core.logging import get_logger, get_struct_logger, request_id

logger = get_logger(__name__)
access_logger = get_struct_logger("campus_exit.access")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds a unique request ID to each incoming request.

    The request ID is:
    - Stored in request.state.request_id
    - Bound to the logging context for the duration of the request
    - Added to response headers as X-Request-ID
    """

    def __init__(self, app: ASGIApp, header_name: str = "X-Request-ID"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Reuse an upstream request ID when a proxy supplied one
        req_id = request.headers.get(self.header_name) or str(uuid.uuid4())
        request.state.request_id = req_id

        token = request_id.set(req_id)
        try:
            response = await call_next(request)
        finally:
            request_id.reset(token)

        response.headers[self.header_name] = req_id
        return response


class TimingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that measures request processing time and writes the access log.

    Adds X-Process-Time header to responses with the processing duration in seconds.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time

        response.headers["X-Process-Time"] = f"{process_time:.4f}"

        access_logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            process_time=round(process_time, 4),
        )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds common security headers to all responses.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response


def register_middlewares(app: FastAPI, include_security: bool = True) -> None:
    """
    Register all core middlewares to the FastAPI application.

    Middlewares are registered in reverse order of execution (LIFO): the
    request ID middleware is added last so it runs first and every later
    log line carries the ID.
    """
    app.add_middleware(TimingMiddleware)

    if include_security:
        app.add_middleware(SecurityHeadersMiddleware)

    app.add_middleware(RequestIDMiddleware)

    logger.info(
        "Core middlewares registered",
        extra={"security_headers": include_security},
    )


__all__ = [
    "RequestIDMiddleware",
    "TimingMiddleware",
    "SecurityHeadersMiddleware",
    "register_middlewares",
]
