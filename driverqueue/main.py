# driverqueue/main.py
"""
FastAPI application entry point.
Includes security middleware, global error handlers, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from driverqueue.routers import admin, drivers, health
from driverqueue.database import create_tables
from driverqueue.config import settings
from driverqueue.services.queue_errors import QueueError
from driverqueue.utils.logger import get_logger
import time

logger = get_logger(__name__)

API_PREFIX = "/api/v1"
ADMIN_PREFIX = f"{API_PREFIX}/admin"

app = FastAPI(
    title="Driver Queue API",
    description="Driver waiting queue: intake, call next, recall, attended/no-show, clear.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (allow the admin page on the same LAN to call the API) ─────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict to admin host in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional lightweight API key auth for the admin endpoints.
    Intake (/drivers) and health stay open, drivers don't have keys.
    Set API_KEY in .env. Leave empty to disable auth.
    """
    async def dispatch(self, request: Request, call_next):
        if not settings.API_KEY or not request.url.path.startswith(ADMIN_PREFIX):
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != settings.API_KEY:
            logger.warning(f"Rejected {request.method} {request.url.path}: bad or missing API key")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


app.add_middleware(APIKeyMiddleware)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Queue Error Handler ──────────────────────────────────────────────────────
@app.exception_handler(QueueError)
async def queue_error_handler(request: Request, exc: QueueError):
    logger.warning(f"{request.method} {request.url.path} → {exc.status_code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(admin.router,   prefix=API_PREFIX, tags=["🛠  Admin Queue"])
app.include_router(drivers.router, prefix=API_PREFIX, tags=["🚚 Driver Intake"])
app.include_router(health.router,  prefix=API_PREFIX, tags=["💚 Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 Driver Queue backend starting up...")
    create_tables()
    logger.info("✅ Database tables ready")
    logger.info(f"📱 SMS notifications: {'enabled' if settings.sms_configured else 'disabled'}")
    logger.info(f"🔐 Admin API key: {'required' if settings.API_KEY else 'not set'}")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 Driver Queue backend shutting down...")
