"""
PostDesk — HTTP Method Override Middleware
============================================

What:  Lets HTML forms reach PUT, PATCH and DELETE routes.
How:   For POST requests, reads the override from the X-HTTP-Method-Override
       header or from a `_method` field in a urlencoded body, and rewrites
       scope["method"] before routing. The buffered body is replayed
       unchanged to the application.

Written as a plain ASGI middleware: it must change the scope the router
sees, which BaseHTTPMiddleware does not allow.
"""

from typing import Awaitable, Callable, Tuple
from urllib.parse import parse_qs

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

OVERRIDABLE_METHODS = {"PUT", "PATCH", "DELETE"}


class MethodOverrideMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] != "POST":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        override = headers.get("x-http-method-override", "")
        if not override and headers.get("content-type", "").startswith(
            "application/x-www-form-urlencoded"
        ):
            body, receive = await buffer_body(receive)
            fields = parse_qs(body.decode("latin-1"), keep_blank_values=True)
            override = fields.get("_method", [""])[0]

        method = override.strip().upper()
        if method in OVERRIDABLE_METHODS:
            scope = dict(scope, method=method)
        await self.app(scope, receive, send)


async def buffer_body(receive: Receive) -> Tuple[bytes, Callable[[], Awaitable[Message]]]:
    """Read the whole request body and return it with a receive that replays it."""
    chunks = []
    more_body = True
    while more_body:
        message = await receive()
        if message["type"] != "http.request":
            break
        chunks.append(message.get("body", b""))
        more_body = message.get("more_body", False)
    body = b"".join(chunks)

    replayed = False

    async def replay() -> Message:
        nonlocal replayed
        if not replayed:
            replayed = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return body, replay
