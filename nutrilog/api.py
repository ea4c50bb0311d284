# -*- coding: utf-8 -*-
"""
Nutrition intake API

Users, profiles and per-date intake totals (daily / weekly) over SQLite.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .app_db import describe_schema, init_app_db
from .config import settings
from .intake.api import router as intake_router
from .intake.storage import IntakeRequestError, IntakeStorageError
from .profiles.api import router as profiles_router
from .users.api import router as users_router

logging.basicConfig(
    level=settings.log_level,
    format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Nutrition Intake API",
    description="Users, profiles and daily/weekly nutrient intake aggregation",
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

# Create tables at import so every client (including TestClient) sees them.
init_app_db(settings.db_path)


@app.middleware("http")
async def _log_requests(request: Request, call_next):
    t0 = time.perf_counter()
    qs = request.url.query
    logger.info(">> %s %s%s", request.method, request.url.path, f"?{qs}" if qs else "")
    response = await call_next(request)
    dt_ms = (time.perf_counter() - t0) * 1000
    logger.info("<< %s %s %s (%.1f ms)", request.method, request.url.path, response.status_code, dt_ms)
    return response


# ---------- error envelopes ----------
def _error(status_code: int, message: str, exc: Optional[BaseException] = None, **extra: Any) -> JSONResponse:
    content: Dict[str, Any] = {"error": message, **extra}
    if exc is not None and status_code >= 500 and settings.debug:
        cause = exc.__cause__ or exc
        content["details"] = f"{type(cause).__name__}: {cause}"
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(IntakeRequestError)
async def _intake_request_error(request: Request, exc: IntakeRequestError):
    return _error(400, str(exc))


@app.exception_handler(IntakeStorageError)
async def _intake_storage_error(request: Request, exc: IntakeStorageError):
    return _error(500, str(exc), exc)


@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        field = ".".join(loc) or "request"
        problems.append(f"{field}: {err.get('msg', 'invalid value')}")
    return _error(400, "Invalid request: " + "; ".join(problems))


@app.exception_handler(StarletteHTTPException)
async def _http_error(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        return _error(404, "Endpoint not found", path=request.url.path, method=request.method)
    return _error(exc.status_code, str(exc.detail), exc)


@app.exception_handler(Exception)
async def _unhandled_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(500, "Internal server error", exc)


app.include_router(users_router)
app.include_router(profiles_router)
app.include_router(intake_router)


@app.get("/api/health")
def health() -> dict:
    return {
        "success": True,
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "environment": settings.environment,
        "version": app.version,
    }


@app.get("/api/schema")
def schema() -> dict:
    """Describe the tables and columns of the configured database."""
    tables = describe_schema(settings.db_path)
    return {"success": True, "tables": tables}


def run() -> None:
    """Console entry point (used by pyproject [project.scripts])."""
    import uvicorn

    uvicorn.run("nutrilog.api:app", host=settings.host, port=settings.port, reload=False)
