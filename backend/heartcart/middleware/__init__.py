"""
Middleware package.
"""
from heartcart.middleware.error_handler import ErrorHandlerMiddleware
from heartcart.middleware.request_id import RequestIdMiddleware

__all__ = [
    "ErrorHandlerMiddleware",
    "RequestIdMiddleware",
]
