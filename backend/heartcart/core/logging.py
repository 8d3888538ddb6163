"""
structlog setup for the API.

Production writes one JSON object per line; other environments get the
console renderer. Request-scoped values (request id, user id) live in
structlog contextvars and are merged into every event.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from heartcart.core.config import settings

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "openai", "aiosqlite", "passlib")


def _add_service(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", "heartcart")
    event_dict.setdefault("env", settings.environment)
    return event_dict


def configure_logging() -> None:
    """Configure structlog and route stdlib logging to stdout."""
    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _add_service,
        structlog.processors.StackInfoRenderer(),
    ]

    renderer: Processor
    if settings.is_production:
        shared.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=settings.environment == "development")

    structlog.configure(
        processors=[*shared, renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    level = logging.getLevelNamesMapping().get(settings.log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_request_context(request_id: str, **values: Any) -> None:
    """Start a fresh logging context for one request."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, **values)


def bind_user(user_id: Optional[object]) -> None:
    if user_id is not None:
        structlog.contextvars.bind_contextvars(user_id=str(user_id))


def current_request_id() -> Optional[str]:
    return structlog.contextvars.get_contextvars().get("request_id")
