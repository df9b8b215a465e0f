from __future__ import annotations

import logging
import time as _t
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from routers import (
    events as events_router,
    saved as saved_router,
    agent as agent_router,
    auth as auth_router,
)
from services import http, storage

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

_log = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    http.configure(settings.http_max_retries)
    storage.init_db()
    _log.info(
        "wattado-api starting env=%s ticketmaster=%s ai=%s db=%s",
        settings.app_env,
        bool(settings.ticketmaster_api_key),
        bool(settings.openai_api_key),
        storage.db_path(),
    )
    yield


app = FastAPI(title="wattado-api", version="1.0.0", lifespan=lifespan)

_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins or ["*"],
    allow_credentials="*" not in _origins,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = _t.perf_counter()
    status = 500
    try:
        response = await call_next(request)
        status = response.status_code
        return response
    finally:
        _log.info(
            "%s %s%s status=%s dur_ms=%d",
            request.method,
            request.url.path,
            f"?{request.url.query}" if request.url.query else "",
            status,
            (_t.perf_counter() - started) * 1000,
        )


app.include_router(events_router.router)
app.include_router(agent_router.router)
app.include_router(saved_router.router)
app.include_router(auth_router.router)


@app.get("/ping")
def ping():
    return {"ok": True, "ts": _t.time()}


@app.get("/health")
def health():
    return {
        "status": "ok",
        "ticketmaster": bool(settings.ticketmaster_api_key),
        "ai": bool(settings.openai_api_key),
    }


@app.get("/")
def root():
    return {"ok": True, "service": "wattado-api"}
