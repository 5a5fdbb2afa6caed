"""Domain exceptions raised by services and routes."""

from typing import Any, Optional

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base class for errors that map straight onto an HTTP status.

    `error` is the short machine-readable name that ends up in the
    ErrorResponse body.
    """

    error = "AppException"

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        errors: Optional[list[dict[str, Any]]] = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=message)
        self.message = message
        self.errors = errors


class BusinessLogicException(AppException):
    error = "BusinessLogicException"


class InvalidOperationException(AppException):
    error = "InvalidOperationException"

    def __init__(self, message: str, errors: Optional[list[dict[str, Any]]] = None) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST, errors)


class ResourceNotFoundException(AppException):
    error = "ResourceNotFoundException"

    def __init__(self, resource: str, identifier: Any = None) -> None:
        if identifier is not None and identifier != "":
            message = f"{resource} with identifier '{identifier}' not found"
        else:
            message = f"{resource} not found"
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class DuplicateResourceException(AppException):
    error = "DuplicateResourceException"

    def __init__(self, resource: str, field: Optional[str] = None, value: Any = None) -> None:
        if field:
            message = f"{resource} with {field} '{value}' already exists"
        else:
            message = f"{resource} already exists"
        super().__init__(message, status.HTTP_409_CONFLICT)


class DatabaseException(AppException):
    """Storage failure; the original error is kept for logging only."""

    error = "DatabaseException"

    def __init__(self, message: str, original_error: Optional[BaseException] = None) -> None:
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.original_error = original_error
