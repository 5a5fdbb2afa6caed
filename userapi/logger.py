"""
Logging setup for the service.

Two formats: "human" for local development and "json" (one object per line)
for log shippers. Modules keep using logging.getLogger(__name__); this only
configures the root handler once.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional

from . import config

HUMAN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# attributes every LogRecord carries; anything else came in through `extra=`
_RESERVED = set(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED and not key.startswith("_"):
                entry[key] = value
        if record.exc_info:
            entry["stack"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    level = (level or config.LOG_LEVEL).upper()
    fmt = (fmt or config.LOG_FORMAT).lower()

    handler = logging.StreamHandler(sys.stdout)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(HUMAN_FORMAT))

    root = logging.getLogger()
    for h in list(root.handlers):
        if getattr(h, "_userapi", False):
            root.removeHandler(h)
    handler._userapi = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level)

    # uvicorn's access log duplicates the request middleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)