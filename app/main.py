# app/main.py
"""
FastAPI application entry point.
Read-only JSON API with permissive CORS, JSON error bodies, and the
scrape/retention scheduler started on startup.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.routers import occupancy, health
from app.database import create_tables
from app.config import settings
from app.utils.exceptions import ApiError, MethodNotAllowed, PoolMonitorError, RouteNotFound
from app.utils.logger import get_logger
import time

logger = get_logger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

app = FastAPI(
    title="Zurich Pool Occupancy API",
    description="Live and historical occupancy of Zurich public pools, sampled from CrowdMonitor.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)


def json_error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=CORS_HEADERS)


# ── CORS + Method Guard + Request Timing ─────────────────────────────────────
@app.middleware("http")
async def cors_and_timing(request: Request, call_next):
    if request.method == "OPTIONS":
        return Response(status_code=status.HTTP_204_NO_CONTENT, headers=CORS_HEADERS)
    if request.method != "GET":
        error = MethodNotAllowed()
        return json_error(error.status_code, error.message)

    start = time.time()
    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Exception Handlers ───────────────────────────────────────────────────────
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        error = RouteNotFound()
    elif exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        error = MethodNotAllowed()
    else:
        return json_error(exc.status_code, str(exc.detail))
    return json_error(error.status_code, error.message)


@app.exception_handler(PoolMonitorError)
async def service_exception_handler(request: Request, exc: PoolMonitorError):
    if isinstance(exc, ApiError):
        return json_error(exc.status_code, exc.message)
    logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return json_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return json_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(occupancy.router, prefix="/api", tags=["🏊 Occupancy"])
app.include_router(health.router,    prefix="/api", tags=["💚 Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 Pool occupancy backend starting up...")
    create_tables()
    logger.info("✅ Database tables ready")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")

    if settings.SCHEDULER_ENABLED:
        from app.services.scheduler import PoolScheduler
        app.state.scheduler = PoolScheduler()
        app.state.scheduler.start()
    else:
        logger.info("Scheduler disabled (SCHEDULER_ENABLED=false)")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 Pool occupancy backend shutting down...")
    scheduler = getattr(app.state, "scheduler", None)
    if scheduler is not None:
        scheduler.stop()
