import json
import logging
import time
from typing import Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = logging.getLogger("userapi.http")

SENSITIVE_FIELDS = ("password", "token", "secret", "apiKey", "authorization")
REDACTED = "***REDACTED***"


def sanitize_body(body: Any) -> Any:
    """Return a shallow copy of a JSON body with credential-like fields masked."""
    if not isinstance(body, dict):
        return body
    clean = dict(body)
    for field in SENSITIVE_FIELDS:
        if clean.get(field):
            clean[field] = REDACTED
    return clean


async def _read_json_body(request: Request) -> Any:
    if "application/json" not in request.headers.get("content-type", ""):
        return None
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return "<unparseable>"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        method, path = request.method, request.url.path
        logger.info(
            "%s %s",
            method,
            path,
            extra={
                "httpMethod": method,
                "query": dict(request.query_params),
                "body": sanitize_body(await _read_json_body(request)),
                "ip": request.client.host if request.client else None,
                "userAgent": request.headers.get("user-agent", ""),
            },
        )

        try:
            response = await call_next(request)
        except Exception:
            duration = int((time.perf_counter() - started) * 1000)
            logger.error("%s %s 500 - %dms", method, path, duration)
            raise

        duration = int((time.perf_counter() - started) * 1000)
        status_code = response.status_code
        if status_code >= 500:
            log = logger.error
        elif status_code >= 400:
            log = logger.warning
        else:
            log = logger.info
        log(
            "%s %s %d - %dms",
            method,
            path,
            status_code,
            duration,
            extra={"statusCode": status_code, "duration": duration},
        )
        return response
