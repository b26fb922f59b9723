import logging
import time
from typing import List

from fastapi import HTTPException, Request
from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from limo_api.core.errors import error_response
from limo_api.core.metrics import request_count, request_duration

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-DNS-Prefetch-Control": "off",
    "Cross-Origin-Opener-Policy": "same-origin",
}


def _endpoint(request: Request) -> str:
    # Route template once routing has run, so path params do not explode labels.
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception:
            endpoint = _endpoint(request)
            request_count.labels(
                method=request.method,
                endpoint=endpoint,
                status=500
            ).inc()
            request_duration.labels(
                method=request.method,
                endpoint=endpoint
            ).observe(time.time() - start_time)
            raise

        endpoint = _endpoint(request)
        request_count.labels(
            method=request.method,
            endpoint=endpoint,
            status=response.status_code
        ).inc()
        request_duration.labels(
            method=request.method,
            endpoint=endpoint
        ).observe(time.time() - start_time)
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Sets conservative response headers."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


class OriginGuardMiddleware(BaseHTTPMiddleware):
    """Refuses browser requests from origins outside the allow-list.

    Requests without an Origin header (server-to-server, curl) pass through.
    """

    def __init__(self, app, allowed_origins: List[str]):
        super().__init__(app)
        self.allowed_origins = set(allowed_origins)

    async def dispatch(self, request: Request, call_next):
        origin = request.headers.get("origin")
        if origin is not None and origin not in self.allowed_origins:
            logger.info(f"Rejected request from origin {origin!r}")
            response = error_response(403, "CORS: origin not allowed")
        else:
            response = await call_next(request)
        if "origin" not in response.headers.get("vary", "").lower():
            response.headers.append("Vary", "Origin")
        return response


class BodyLimitMiddleware:
    """Caps request bodies at ``max_body_bytes``.

    A declared Content-Length over the cap is refused before the app runs.
    Streamed bodies are counted as they are received, and the read fails with
    413 once the running total passes the cap.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int):
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        length = Headers(scope=scope).get("content-length")
        if length and length.isdigit() and int(length) > self.max_body_bytes:
            response = error_response(413, "Request body too large")
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    raise HTTPException(status_code=413, detail="Request body too large")
            return message

        await self.app(scope, limited_receive, send)
