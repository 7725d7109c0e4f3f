"""
PostDesk — Request Logging Middleware
=======================================

What:  One access-log line per request.
How:   Times call_next and logs method, path, matched route name, status,
       duration, request ID and client IP. Redirects also log their target,
       so a store/update/destroy line shows where the browser was sent.

Levels:
    5xx            → ERROR
    422            → INFO     (a rejected form is normal user flow)
    other 4xx      → WARNING
    1xx, 2xx, 3xx  → INFO

Health probes and static assets are not logged. Request bodies never are;
post content stays out of the access log.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from postdesk.middleware.request_id import request_id_var

logger = logging.getLogger("postdesk.access")

SKIPPED_PREFIXES = ("/health", "/static/")

LINE = (
    "%(method)s %(path)s (%(route)s) %(status)d %(duration_ms).1fms "
    "[%(request_id)s] from %(client_ip)s"
)


def level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400 and status != 422:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access log keyed by route name rather than raw path alone."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path.startswith(SKIPPED_PREFIXES):
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000

        # FastAPI's router stores the matched route in the shared scope;
        # router-level 404/405 responses have none
        route_name = getattr(request.scope.get("route"), "name", None) or "-"
        location = response.headers.get("location")
        fields = {
            "request_id": request_id_var.get(""),
            "method": request.method,
            "path": request.url.path,
            "route": route_name,
            "status": response.status_code,
            "duration_ms": round(duration_ms, 2),
            "client_ip": request.client.host if request.client else "unknown",
        }
        if location:
            fields["location"] = location

        logger.log(
            level_for(response.status_code),
            LINE + (" -> %(location)s" if location else ""),
            fields,
            extra=fields,
        )
        return response
