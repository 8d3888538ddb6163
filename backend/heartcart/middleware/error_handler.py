"""
Last-resort handler for exceptions no exception handler rendered.

Pure ASGI for the same reason as the request id middleware.
"""
import json

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from heartcart.core.logging import current_request_id, get_logger

logger = get_logger(__name__)


def _error_body(request_id: str | None) -> bytes:
    content = {"detail": "Internal server error", "type": "InternalServerError"}
    if request_id:
        content["requestId"] = request_id
    return json.dumps(content).encode("utf-8")


class ErrorHandlerMiddleware:
    """
    Turns an unhandled exception into a JSON 500.

    Domain errors and HTTPException never reach this point; FastAPI's
    registered handlers render them. If the response has already started
    there is nothing to replace, so the exception is logged and re-raised.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = False

        async def track_start(message: Message) -> None:
            nonlocal started
            if message["type"] == "http.response.start":
                started = True
            await send(message)

        try:
            await self.app(scope, receive, track_start)
        except Exception as e:
            logger.exception(
                "Unhandled exception",
                error=str(e),
                error_type=type(e).__name__,
                method=scope.get("method"),
                path=scope.get("path"),
                response_started=started,
            )
            if started:
                raise

            request_id = scope.get("state", {}).get("request_id") or current_request_id()
            body = _error_body(request_id)
            await send({
                "type": "http.response.start",
                "status": 500,
                "headers": [
                    (b"content-type", b"application/json"),
                    (b"content-length", str(len(body)).encode()),
                ],
            })
            await send({"type": "http.response.body", "body": body})
