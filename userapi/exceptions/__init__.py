"""Exceptions and the handlers that turn them into ErrorResponse bodies."""

from .custom import (
    AppException,
    BusinessLogicException,
    InvalidOperationException,
    ResourceNotFoundException,
    DuplicateResourceException,
    DatabaseException,
)
from .handlers import (
    build_error_response,
    sanitize_error_message,
    register_exception_handlers,
)

__all__ = [
    "AppException",
    "BusinessLogicException",
    "InvalidOperationException",
    "ResourceNotFoundException",
    "DuplicateResourceException",
    "DatabaseException",
    "build_error_response",
    "sanitize_error_message",
    "register_exception_handlers",
]
