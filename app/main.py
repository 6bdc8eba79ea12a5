# app/main.py
"""
FastAPI application entry point.
Includes security middleware, domain + global error handlers, all routers,
and the background jobs (auto-cancel sweeper, lot status monitor).
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from app.routers import access, analytics, auth, bookings, gate, health, payments, sensors, slots
from app.database import SessionLocal, create_tables, seed_default_data
from app.config import settings
from app.errors import SmartParkingError
from app.services.auto_cancel_service import run_auto_cancel_sweeper
from app.services.gate_controller import gate_controller
from app.services.lot_monitor import lot_monitor
from app.utils.logger import get_logger
import time
import asyncio

logger = get_logger(__name__)

app = FastAPI(
    title="Smart Parking API",
    description="Slot booking, gated access, sensor reconciliation and billing.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (allow the web UI to call the API) ─────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict to the UI origin in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional lightweight API key auth for client endpoints.
    Sensor webhook and gate status poll are excluded — the hardware doesn't send keys.
    Set API_KEY in .env. Leave empty to disable auth.
    """
    async def dispatch(self, request: Request, call_next):
        open_paths = {"/api/v1/sensors", "/api/v1/gate/status", "/api/v1/health",
                      "/docs", "/redoc", "/openapi.json"}
        if request.url.path in open_paths or not settings.API_KEY:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != settings.API_KEY:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


if settings.API_KEY:
    app.add_middleware(APIKeyMiddleware)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Exception Handlers ───────────────────────────────────────────────────────
@app.exception_handler(SmartParkingError)
async def domain_exception_handler(request: Request, exc: SmartParkingError):
    """Business rejections (conflict, window, not found...) are routine, not faults."""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(auth.router,      prefix="/api/v1", tags=["🔑 Auth"])
app.include_router(slots.router,     prefix="/api/v1", tags=["🅿️  Slots"])
app.include_router(bookings.router,  prefix="/api/v1", tags=["📅 Bookings"])
app.include_router(access.router,    prefix="/api/v1", tags=["🚗 Access"])
app.include_router(gate.router,      prefix="/api/v1", tags=["🚪 Gates"])
app.include_router(sensors.router,   prefix="/api/v1", tags=["📡 Sensors"])
app.include_router(payments.router,  prefix="/api/v1", tags=["💳 Payments"])
app.include_router(analytics.router, prefix="/api/v1", tags=["📊 Analytics"])
app.include_router(health.router,    prefix="/api/v1", tags=["💚 Health"])

_background_tasks: list[asyncio.Task] = []


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 Smart Parking backend starting up...")
    create_tables()
    if settings.SEED_DEFAULT_DATA:
        db = SessionLocal()
        try:
            seed_default_data(db)
        finally:
            db.close()
    logger.info("✅ Database tables ready")

    if settings.ENABLE_BACKGROUND_JOBS:
        _background_tasks.append(asyncio.create_task(run_auto_cancel_sweeper(), name="auto-cancel"))
        _background_tasks.append(asyncio.create_task(lot_monitor.run(), name="lot-status"))
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 Smart Parking backend shutting down...")
    for task in _background_tasks:
        task.cancel()
    await asyncio.gather(*_background_tasks, return_exceptions=True)
    _background_tasks.clear()
    gate_controller.shutdown()
