from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__, config
from .database import init_schema
from .exceptions import register_exception_handlers
from .logger import setup_logging
from .middleware import RequestLoggingMiddleware
from .registry import Registry
from .users import router as users_router

logger = logging.getLogger(__name__)

app = FastAPI(title="User Service", version=__version__)

app.include_router(users_router)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)

register_exception_handlers(app)

REG = Registry()
app.state.registry = REG


@app.on_event("startup")
def _startup():
    setup_logging()
    init_schema()
    REG.load_entities()
    logger.info("User service started - env=%s, db=%s", config.ENV, config.DATABASE_PATH)


@app.get("/healthz")
def health():
    return {
        "ok": True,
        "env": config.ENV,
        "entities": list(REG.entities_cfg.keys()),
    }


@app.post("/reload")
def reload_registry():
    return {"reloaded": REG.refresh_all()}
