"""
Domain exceptions raised by services and their HTTP mapping.

Services never raise HTTPException; routers either translate explicitly
or let the registered handler below do it.
"""
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from heartcart.core.logging import get_logger

logger = get_logger(__name__)


class HeartCartError(Exception):
    """Base class for all domain errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, *, errors: Optional[dict[str, list[str]]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = errors


class AuthenticationError(HeartCartError):
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(HeartCartError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(HeartCartError):
    status_code = status.HTTP_409_CONFLICT


class PermissionDeniedError(HeartCartError):
    status_code = status.HTTP_403_FORBIDDEN


class InvalidInputError(HeartCartError):
    status_code = status.HTTP_400_BAD_REQUEST


class DraftValidationError(HeartCartError):
    """Draft failed validation; `errors` maps field -> messages."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class PublicationError(HeartCartError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class StorageError(HeartCartError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class PayloadTooLargeError(HeartCartError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE


class AIServiceError(HeartCartError):
    status_code = status.HTTP_502_BAD_GATEWAY


class AINotConfiguredError(AIServiceError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


async def heartcart_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render a domain error as JSON with its mapped status."""
    assert isinstance(exc, HeartCartError)

    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "Request failed",
        error=exc.message,
        type=type(exc).__name__,
        path=request.url.path,
    )

    content: dict[str, Any] = {
        "detail": exc.message,
        "type": type(exc).__name__,
    }
    if exc.errors:
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """Register domain error handlers with the application."""
    app.add_exception_handler(HeartCartError, heartcart_error_handler)
