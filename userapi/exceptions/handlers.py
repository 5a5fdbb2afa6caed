"""Map every exception raised while serving a request to one ErrorResponse shape.

    {
        "success": false,
        "message": "...",
        "statusCode": 404,
        "error": "ResourceNotFoundException",
        "errors": [{"field": "...", "message": "..."}],   # validation only
        "timestamp": "2024-01-01T00:00:00.000Z",
        "path": "/api/users/42",
        "stack": "..."                                     # outside production
    }
"""

import logging
import re
import sqlite3
import traceback
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from jsonschema import ValidationError as SchemaValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import config
from ..filters import FilterSyntaxError
from ..filters.serializer import format_datetime
from .custom import AppException

logger = logging.getLogger(__name__)

_FILE_PATH_RE = re.compile(r"/[^\s]+\.(py|sql)", re.IGNORECASE)
_SQL_RE = re.compile(r"(SELECT|INSERT|UPDATE|DELETE)\s.+", re.IGNORECASE)


def sanitize_error_message(message: str, status_code: int) -> str:
    """Strip internals from messages shown to clients in production."""
    if status_code >= 500:
        return "An internal server error occurred. Please try again later."
    message = _FILE_PATH_RE.sub("[file]", message)
    message = _SQL_RE.sub("", message)
    return message.strip()


def build_error_response(
    request: Request,
    status_code: int,
    message: str,
    error: Optional[str] = None,
    errors: Optional[list[dict[str, Any]]] = None,
    exc: Optional[BaseException] = None,
) -> JSONResponse:
    if config.IS_PRODUCTION:
        message = sanitize_error_message(message, status_code)

    body: dict[str, Any] = {
        "success": False,
        "message": message,
        "statusCode": status_code,
        "error": error,
        "errors": errors,
        "timestamp": format_datetime(datetime.now(timezone.utc)),
        "path": request.url.path,
    }
    if exc is not None and not config.IS_PRODUCTION and status_code >= 500:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    log_context = {
        "method": request.method,
        "url": str(request.url),
        "statusCode": status_code,
        "ip": request.client.host if request.client else None,
        "userAgent": request.headers.get("user-agent"),
    }
    if status_code >= 500:
        logger.error("%s - %s", message, log_context, exc_info=exc)
    elif status_code >= 400:
        logger.warning("%s - %s", message, log_context)

    return JSONResponse(status_code=status_code, content=body)


def _field_from_loc(loc: tuple) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "request"


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    return build_error_response(request, exc.status_code, exc.message, exc.error, exc.errors, exc)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "An error occurred"
    return build_error_response(request, exc.status_code, message, "HttpException")


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": _field_from_loc(tuple(e.get("loc", ()))), "message": e.get("msg", "")}
        for e in exc.errors()
    ]
    return build_error_response(
        request, 422, "Validation failed", "ValidationError", errors
    )


async def schema_validation_handler(request: Request, exc: SchemaValidationError) -> JSONResponse:
    field = ".".join(str(p) for p in exc.absolute_path) or "body"
    return build_error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        "Validation failed",
        "ValidationError",
        [{"field": field, "message": exc.message}],
    )


async def filter_syntax_handler(request: Request, exc: FilterSyntaxError) -> JSONResponse:
    errors = [{"field": "filter", **d.to_dict()} for d in exc.diagnostics]
    return build_error_response(request, status.HTTP_400_BAD_REQUEST, str(exc), "FilterSyntaxError", errors)


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return build_error_response(request, status.HTTP_400_BAD_REQUEST, str(exc), "BadRequest")


async def integrity_error_handler(request: Request, exc: sqlite3.IntegrityError) -> JSONResponse:
    text = str(exc)
    if "UNIQUE" in text:
        return build_error_response(request, status.HTTP_409_CONFLICT, "Resource already exists", "DuplicateError")
    if "FOREIGN KEY" in text:
        return build_error_response(
            request, status.HTTP_400_BAD_REQUEST, "Referenced resource does not exist", "ForeignKeyViolation"
        )
    if "NOT NULL" in text:
        return build_error_response(request, status.HTTP_400_BAD_REQUEST, "Required field is missing", "NotNullViolation")
    return await database_error_handler(request, exc)


async def database_error_handler(request: Request, exc: sqlite3.Error) -> JSONResponse:
    message = str(exc) if not config.IS_PRODUCTION else "Database error occurred"
    return build_error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, message, "DatabaseError", exc=exc)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return build_error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        str(exc) or "Internal server error",
        type(exc).__name__,
        exc=exc,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SchemaValidationError, schema_validation_handler)
    app.add_exception_handler(FilterSyntaxError, filter_syntax_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(sqlite3.IntegrityError, integrity_error_handler)
    app.add_exception_handler(sqlite3.Error, database_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
