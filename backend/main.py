# main.py — Business Manager API
# Features:
# - Record store chosen at startup (hosted service or SQL substitute)
# - Request correlation IDs
# - Record errors mapped to HTTP statuses
# - Health check with record store verification
# - All entity routers registered

import os
import json
import uuid
import time
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from config import StoreSettings
from database import close_db, create_engine, create_session_maker, init_db
from errors import RecordNotFoundError, RecordOperationError, RecordStoreUnavailable
from notifications import NotificationCenter
from record_store import ApperRecordStore
from schemas import SCHEMAS_BY_TABLE
from services import ServiceRegistry
from sql_record_store import SqlRecordStore
from telemetry import setup_telemetry

# Logging
logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
)
logger = logging.getLogger("business-manager")

VERSION = "1.0.0"


def _check_startup_config(settings: StoreSettings) -> bool:
    """Log configuration problems; True when there are none."""
    warnings = settings.check()
    if settings.backend == "apper":
        logger.info(f"🗄️  Hosted record store at {settings.apper_base_url} (timeout {settings.timeout_seconds:g}s)")
    else:
        logger.info("🗄️  SQL record store")
    for w in warnings:
        logger.warning(w)
    return len(warnings) == 0


async def open_record_store(settings: StoreSettings):
    """Build the configured store; returns (store, engine or None)"""
    if settings.backend == "sql":
        engine = create_engine(settings)
        await init_db(engine)
        return SqlRecordStore(create_session_maker(engine), SCHEMAS_BY_TABLE), engine
    return ApperRecordStore(settings), None


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"🚀 Starting Business Manager v{VERSION}...")
    settings = StoreSettings.from_env()
    _check_startup_config(settings)
    store, engine = await open_record_store(settings)
    app.state.registry = ServiceRegistry(store, NotificationCenter())
    logger.info(f"✅ Record store ready ({store.backend_name})")
    # No-op unless OTEL_EXPORTER_OTLP_ENDPOINT is set
    setup_telemetry(app, engine)
    yield
    logger.info("🛑 Shutting down Business Manager...")
    await store.aclose()
    if engine is not None:
        await close_db(engine)


app = FastAPI(
    title="Business Manager",
    description="Clients, projects, tasks, time tracking, issues, files and chat over a hosted record store",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ============================================================
# CORS
# ============================================================

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://localhost:5173"
    ).split(",")
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-Request-ID", "X-Correlation-ID"],
    expose_headers=["X-Request-ID", "X-Correlation-ID"],
)


# ============================================================
# MIDDLEWARE: Correlation IDs + Timing
# ============================================================

@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    correlation_id = request.headers.get("X-Correlation-ID", request_id)
    request.state.request_id = request_id
    request.state.correlation_id = correlation_id

    start = time.perf_counter()
    response = await call_next(request)
    duration = time.perf_counter() - start

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Correlation-ID"] = correlation_id
    response.headers["X-Response-Time"] = f"{duration:.4f}s"

    logger.info(
        f"{request.method} {request.url.path} → {response.status_code} "
        f"({duration:.3f}s) [rid={request_id[:8]}]"
    )
    return response


# ============================================================
# EXCEPTION HANDLERS
# ============================================================

def _error(request: Request, status_code: int, detail, **extra) -> JSONResponse:
    content = {"detail": detail, "request_id": getattr(request.state, "request_id", None)}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Sanitise errors to ensure JSON serialisability
    errors = []
    for err in exc.errors():
        clean_err = {
            "type": str(err.get("type", "unknown")),
            "loc": list(err.get("loc", [])),
            "msg": str(err.get("msg", "")),
        }
        if "input" in err:
            try:
                json.dumps(err["input"])
                clean_err["input"] = err["input"]
            except (TypeError, ValueError):
                clean_err["input"] = str(err["input"])
        errors.append(clean_err)
    return _error(request, 422, errors)


@app.exception_handler(RecordNotFoundError)
async def not_found_handler(request: Request, exc: RecordNotFoundError):
    return _error(request, 404, str(exc))


@app.exception_handler(RecordOperationError)
async def operation_error_handler(request: Request, exc: RecordOperationError):
    return _error(request, 422, exc.message, errors=exc.errors)


@app.exception_handler(RecordStoreUnavailable)
async def unavailable_handler(request: Request, exc: RecordStoreUnavailable):
    logger.error(f"Record store unavailable: {exc}")
    return _error(request, 503, "Record store unavailable")


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return _error(request, 400, str(exc))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return _error(request, 500, "Internal server error")


# ============================================================
# ROUTERS
# ============================================================

from routers import (
    clients, projects, tasks, task_lists, milestones, team_members,
    time_entries, issues, files, chat, dashboard, notifications,
)

app.include_router(clients.router)
app.include_router(projects.router)
app.include_router(tasks.router)
app.include_router(task_lists.router)
app.include_router(milestones.router)
app.include_router(team_members.router)
app.include_router(time_entries.router)
app.include_router(issues.router)
app.include_router(files.router)
app.include_router(chat.router)
app.include_router(dashboard.router)
app.include_router(notifications.router)


# ============================================================
# HEALTH & ROOT
# ============================================================

@app.get("/health")
async def health_check(request: Request):
    """Health check with record store verification"""
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        store_status, backend = "not initialised", None
    else:
        store_status, backend = await registry.store.health(), registry.store.backend_name

    return {
        "status": "degraded" if store_status.startswith("error") or registry is None else "healthy",
        "version": VERSION,
        "environment": os.getenv("ENVIRONMENT", "development"),
        "record_store": {"backend": backend, "status": store_status},
    }


@app.get("/")
async def root():
    return {
        "name": "Business Manager",
        "version": VERSION,
        "docs": "/docs",
        "health": "/health",
        "status": "operational",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=os.getenv("ENVIRONMENT") != "production",
    )
