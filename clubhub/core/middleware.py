"""
ClubHub - HTTP Middleware
Request id, timing and per-workflow request logging
"""

import logging
import time
from typing import Callable, Optional, Set
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from clubhub.core.config import settings
from clubhub.core.logging_config import (
    logger,
    set_request_id,
    set_user_id,
    generate_request_id,
)


QUIET_PATHS: Set[str] = {
    "/",
    "/health",
    "/favicon.ico",
    "/docs",
    "/redoc",
    "/openapi.json",
}

SLOW_REQUEST_MS = 1000

# Expected outcomes of normal use (repeat check-ins, lost CAS races) - not worth a warning
EXPECTED_CONFLICT_STATUSES = {409}


def workflow_for_path(path: str) -> Optional[str]:
    """'/api/v1/attendance/check-in' -> 'attendance'"""
    prefix = f"/api/{settings.API_VERSION}/"
    if not path.startswith(prefix):
        return None
    head = path[len(prefix):].split("/", 1)[0]
    return head or None


def is_quiet(path: str) -> bool:
    return path in QUIET_PATHS or path.startswith(f"/api/{settings.API_VERSION}/health")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every API request with a request id, its workflow and timing.

    - Reuses an incoming X-Request-ID header or generates one
    - Echoes X-Request-ID and X-Response-Time on the response
    - 5xx (store unavailable included) at error, 4xx at warning, 409 conflicts at info
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        set_request_id(request_id)

        path = request.url.path
        quiet = is_quiet(path)
        workflow = workflow_for_path(path)
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"{request.method} {path} failed after {duration_ms:.2f}ms: {type(exc).__name__}",
                exc_info=True,
                extra={
                    "event_type": "http_request_error",
                    "http_method": request.method,
                    "http_path": path,
                    "workflow": workflow,
                    "duration_ms": duration_ms,
                },
            )
            raise
        finally:
            set_user_id("")

        duration_ms = (time.perf_counter() - start_time) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

        if not quiet:
            status_code = response.status_code
            if status_code >= 500:
                level = logging.ERROR
            elif status_code >= 400 and status_code not in EXPECTED_CONFLICT_STATUSES:
                level = logging.WARNING
            else:
                level = logging.INFO
            logger.log_request(request.method, path, status_code, duration_ms, level=level, workflow=workflow)

        if duration_ms > SLOW_REQUEST_MS:
            logger.warning(
                f"Slow request: {request.method} {path} took {duration_ms:.2f}ms",
                extra={"event_type": "slow_request", "workflow": workflow, "duration_ms": duration_ms},
            )

        set_request_id("")
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds baseline security headers to every response"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if settings.ENVIRONMENT == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response
