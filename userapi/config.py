# userapi/config.py
# Environment-driven settings. Values are read once at import; .env is loaded first.

from __future__ import annotations
import os

from dotenv import load_dotenv

load_dotenv()

ENV = os.getenv("ENV", "development")
IS_PRODUCTION = ENV.lower() == "production"

# ---- Logging ---------------------------------------------------------------

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG" if not IS_PRODUCTION else "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "human")  # "human" or "json"

# ---- Storage ---------------------------------------------------------------

DATABASE_PATH = os.getenv("DATABASE_PATH", "data/app.db")
ENTITIES_FILE = os.getenv("ENTITIES_FILE", "config/entities.yaml")

# ---- HTTP ------------------------------------------------------------------

API_PREFIX = os.getenv("API_PREFIX", "/api")
CORS_ALLOW_ORIGINS = [o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "").split(",") if o.strip()]

# ---- Pagination ------------------------------------------------------------

GLOBAL_MAX_PAGE_SIZE = int(os.getenv("GLOBAL_MAX_PAGE_SIZE", "1000"))
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "100"))
