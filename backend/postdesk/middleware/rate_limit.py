"""
PostDesk — Write Rate Limiting Middleware
===========================================

What:  Caps how many POST/PUT/PATCH/DELETE requests one client IP may send
       per window. GET and HEAD pass through untouched.
How:   Each IP owns a deque of write timestamps, oldest first. Expired
       entries are popped from the left before counting; a full deque
       yields 429 with Retry-After set to when its oldest entry expires.

Windows live in process memory, one set per worker.
"""

import logging
import time
from collections import deque
from typing import Deque, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from postdesk.config import settings
from postdesk.exceptions import RateLimitExceededError
from postdesk.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

LIMITED_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})
SWEEP_EVERY = 1000


def admit(window: Deque[float], now: float, limit: int, length: int) -> Optional[int]:
    """Record a write in `window`, or return seconds to wait if it is full."""
    while window and window[0] <= now - length:
        window.popleft()
    if len(window) >= limit:
        return int(window[0] + length - now) + 1
    window.append(now)
    return None


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._windows: Dict[str, Deque[float]] = {}
        self._writes = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method not in LIMITED_METHODS:
            return await call_next(request)

        ip = request.client.host if request.client else "unknown"
        now = time.monotonic()
        length = settings.rate_limit_window
        window = self._windows.setdefault(ip, deque())

        retry_after = admit(window, now, settings.rate_limit_requests, length)
        if retry_after is not None:
            logger.warning(
                "Write limit hit for %s (%d in %ds), retry in %ds",
                ip, len(window), length, retry_after,
            )
            return self._rejection(RateLimitExceededError(retry_after=retry_after))

        self._writes += 1
        if self._writes % SWEEP_EVERY == 0:
            self._sweep(now - length)
        return await call_next(request)

    @staticmethod
    def _rejection(exc: RateLimitExceededError) -> JSONResponse:
        return JSONResponse(
            status_code=429,
            content={
                "error": "rate_limit_exceeded",
                "message": exc.message,
                "request_id": request_id_var.get("") or None,
            },
            headers={"Retry-After": str(exc.retry_after)},
        )

    def _sweep(self, cutoff: float) -> None:
        idle = [ip for ip, window in self._windows.items() if not window or window[-1] <= cutoff]
        for ip in idle:
            del self._windows[ip]
        if idle:
            logger.debug("Dropped %d idle rate-limit windows", len(idle))
