"""
Request id propagation.

Pure ASGI so it does not interfere with yield dependencies such as the
database session.
"""
import re
import uuid

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from heartcart.core.logging import bind_request_context

HEADER = b"x-request-id"
# Client-supplied ids are echoed back, so only accept simple tokens
VALID_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def _incoming_id(scope: Scope) -> str | None:
    for name, value in scope.get("headers", []):
        if name == HEADER:
            candidate = value.decode("latin-1").strip()
            return candidate if VALID_ID.match(candidate) else None
    return None


class RequestIdMiddleware:
    """Tags each HTTP request with an id for logs and the `X-Request-ID` header."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = _incoming_id(scope) or uuid.uuid4().hex
        bind_request_context(request_id, method=scope.get("method"), path=scope.get("path"))
        scope.setdefault("state", {})["request_id"] = request_id

        async def send_with_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                message["headers"] = [
                    *message.get("headers", []),
                    (HEADER, request_id.encode("latin-1")),
                ]
            await send(message)

        await self.app(scope, receive, send_with_id)
