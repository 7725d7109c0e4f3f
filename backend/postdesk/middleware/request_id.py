"""
PostDesk — Request ID Middleware
==================================

What:  Gives every request a correlation ID and echoes it in X-Request-ID.
How:   A client-supplied X-Request-ID is reused when it is a short token of
       letters, digits, dots, dashes and underscores; anything else is
       replaced by a fresh 8-character hex ID so arbitrary header text never
       reaches the logs or the error pages.

The ID lives in a ContextVar (loggers, error handlers) and on request.state
(route handlers).
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

HEADER = "X-Request-ID"

_ACCEPTED = re.compile(r"[A-Za-z0-9._-]{1,64}")

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def resolve_request_id(supplied: str) -> str:
    """The client's ID if it is acceptable, otherwise a new one."""
    if supplied and _ACCEPTED.fullmatch(supplied):
        return supplied
    return new_request_id()


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get(HEADER, ""))
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers[HEADER] = rid
        return response
