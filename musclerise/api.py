# -*- coding: utf-8 -*-
"""
MuscleRise API

Authoritative day-cycle state: lazy daily reset, workout completion,
history/today statistics and the client write-behind sync target.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .auth.api import router as auth_router
from .auth.security import get_current_user_from_request
from .config import settings
from .daykey import DayCycle
from .errors import MuscleRiseError, StoreUnavailableError
from .users.api import router as users_router
from .users.storage import UserStore
from .workouts.api import router as workouts_router

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


app = FastAPI(
    title="MuscleRise",
    description="Daily workout plans, idempotent exercise crediting, streaks and rewards",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Shared services, overridable from tests through app.state.
app.state.store = UserStore(settings.db_path)
app.state.cycle = DayCycle(settings.day_boundary_hour, settings.timezone)
app.state.clock = _utc_now

# Ensure the app DB exists even when lifespan events are not triggered (e.g. some test clients).
app.state.store.init()


_AUTH_EXEMPT_PREFIXES = (
    "/api/auth/login",
    "/api/auth/register",
    "/api/docs",
    "/api/redoc",
    "/api/openapi.json",
)


@app.middleware("http")
async def _auth_gate(request: Request, call_next):
    path = request.url.path
    if path.startswith("/api") and path != "/api/health" and not any(path.startswith(p) for p in _AUTH_EXEMPT_PREFIXES):
        try:
            request.state.user = get_current_user_from_request(request, request.app.state.store)
        except MuscleRiseError as exc:
            return JSONResponse(status_code=exc.status_code, content=exc.to_payload())
    return await call_next(request)


@app.exception_handler(MuscleRiseError)
async def _domain_error_handler(request: Request, exc: MuscleRiseError) -> JSONResponse:
    if isinstance(exc, StoreUnavailableError):
        logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


app.include_router(auth_router)
app.include_router(workouts_router)
app.include_router(users_router)


@app.get("/api/health")
def health() -> dict:
    return {"ok": True, "dayBoundaryHour": app.state.cycle.boundary_hour}


def run() -> None:
    """Console entry point (used by pyproject [project.scripts])."""
    import uvicorn

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    host = os.environ.get("MUSCLERISE_HOST") or os.environ.get("HOST") or "127.0.0.1"
    port_raw = os.environ.get("MUSCLERISE_PORT") or os.environ.get("PORT") or "8000"
    try:
        port = int(port_raw)
    except ValueError:
        port = 8000

    uvicorn.run("musclerise.api:app", host=host, port=port, reload=False)
