# =============================================================================
# BARANGAY AUTH SERVICE - HTTP MIDDLEWARE
# =============================================================================
# File: api/middleware/http_middleware.py
# Description: Request ID, access logging and security headers
# =============================================================================

from typing import Callable
import logging
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from barangay_auth.core.config import settings
from barangay_auth.auth.dependencies import get_client_ip


logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    REQUEST ID MIDDLEWARE                                 │
    │  Generates unique request ID for tracing and logging                    │
    └─────────────────────────────────────────────────────────────────────────┘
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        """Add X-Request-ID to request and response."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    LOGGING MIDDLEWARE                                    │
    │  Logs request/response details for monitoring and debugging             │
    └─────────────────────────────────────────────────────────────────────────┘

    Only method, path and status are logged; bodies never are, since they
    carry passwords and tokens.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        start_time = time.perf_counter()

        method = request.method
        path = request.url.path
        client_ip = get_client_ip(request)
        request_id = getattr(request.state, "request_id", "unknown")

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
            logger.error(
                f"{method} {path} - ERROR - {duration_ms}ms - "
                f"IP: {client_ip} - RequestID: {request_id} - {e}"
            )
            raise

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            f"{method} {path} - {response.status_code} - {duration_ms}ms - "
            f"IP: {client_ip} - RequestID: {request_id}"
        )

        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    SECURITY HEADERS MIDDLEWARE                           │
    │  Adds security-related HTTP headers to all responses                    │
    └─────────────────────────────────────────────────────────────────────────┘
    """

    # Swagger UI needs scripts from its CDN
    DOCS_PREFIXES = ("/docs", "/redoc", "/openapi.json")

    STRICT_CSP = "default-src 'none'; frame-ancestors 'none'"
    DOCS_CSP = (
        "default-src 'self'; "
        "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
        "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
        "img-src 'self' data: https://fastapi.tiangolo.com"
    )

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["Cache-Control"] = "no-store"

        if settings.is_production:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        if request.url.path.startswith(self.DOCS_PREFIXES):
            response.headers["Content-Security-Policy"] = self.DOCS_CSP
        else:
            response.headers["Content-Security-Policy"] = self.STRICT_CSP

        return response
