"""
Application core: settings, database session, security helpers, logging
and the domain error hierarchy.
"""
from heartcart.core.config import get_settings, settings
from heartcart.core.exceptions import (
    AIServiceError,
    ConflictError,
    DraftValidationError,
    HeartCartError,
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
)

__all__ = [
    "settings",
    "get_settings",
    "HeartCartError",
    "InvalidInputError",
    "NotFoundError",
    "ConflictError",
    "PermissionDeniedError",
    "DraftValidationError",
    "AIServiceError",
]
