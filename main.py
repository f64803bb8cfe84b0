"""
main.py
FastAPI application entry point.
Registers all routers, middleware, exception handlers and the storage
lifecycle.
"""

import json
import logging
import os
import time
import uuid
from contextlib import asynccontextmanager
from contextvars import ContextVar
from logging import LogRecord
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.settings import settings
from config.storage import build_storage
from shared.storage.base import Storage

# Service routers
from services.auth.router import router as auth_router
from services.user.router import router as user_router
from services.professional.router import router as professional_router
from services.catalog.router import router as catalog_router
from services.booking.router import router as booking_router
from services.message.router import router as message_router
from services.requirement.router import router as requirement_router


# ── Logging ──────────────────────────────────────────────────

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "instance": os.getenv("INSTANCE_NAME", "unknown"),
        }
        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


def configure_logging() -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL.upper())


configure_logging()
logger = logging.getLogger(__name__)


# ── Lifespan (startup/shutdown) ───────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle handler."""
    storage: Storage = app.state.storage
    logger.info(
        "Starting %s v%s with %s",
        settings.APP_NAME, settings.APP_VERSION, type(storage).__name__,
    )

    await storage.startup()
    yield

    await storage.shutdown()
    logger.info("Server shutdown complete")


# ── App Factory ───────────────────────────────────────────────

def create_app(storage: Optional[Storage] = None) -> FastAPI:
    """
    Build the application. ``storage`` defaults to the backend named in
    settings; tests pass their own.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""
## ComplianceConnect API

Marketplace connecting businesses with Chartered Accountants and Company Secretaries:
- **Auth**: email/password registration, JWT login
- **Professionals**: discovery by specialization and city, KYC review
- **Services & Bookings**: consultation catalog and booking lifecycle
- **Messages**: per-booking conversation threads
- **Requirements**: compliance needs posted by businesses

### Authentication
`/api/users/me` and admin endpoints require `Authorization: Bearer <token>`
together with an `x-user-id` header naming the token's user.
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.storage = storage if storage is not None else build_storage(settings)

    # ── Middleware (order matters: the last one added runs first) ──
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Process-Time"],
    )

    # GZip compression
    app.add_middleware(GZipMiddleware, minimum_size=500)

    # ── Custom Middleware ──────────────────────────────────────────

    @app.middleware("http")
    async def unhandled_error_middleware(request: Request, call_next):
        """Turn any exception that escaped the routers into a logged 500 response."""
        try:
            return await call_next(request)
        except Exception:
            request_id = getattr(request.state, "request_id", None)
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"message": "Internal Server Error", "requestId": request_id},
            )

    @app.middleware("http")
    async def process_time_middleware(request: Request, call_next):
        """Track and expose request processing time; log one line per API call."""
        start = time.perf_counter()
        response = await call_next(request)
        process_time = round((time.perf_counter() - start) * 1000, 2)
        response.headers["X-Process-Time"] = f"{process_time}ms"
        if request.url.path.startswith("/api"):
            logger.info(
                "%s %s %s in %dms",
                request.method, request.url.path, response.status_code, process_time,
            )
        return response

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """Add unique X-Request-ID to every request for tracing."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers["X-Request-ID"] = request_id
        return response

    # ── Exception Handlers ─────────────────────────────────────────

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": "Invalid request data", "error": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    # ── Routes ────────────────────────────────────────────────────

    @app.get("/health", tags=["Health"], include_in_schema=False)
    async def health_check(request: Request):
        checks = {"status": "ok", "version": settings.APP_VERSION}

        try:
            await request.app.state.storage.ping()
            checks["storage"] = "ok"
        except Exception:
            logger.warning("Storage health check failed", exc_info=True)
            checks["storage"] = "error"
            checks["status"] = "degraded"

        status_code = 200 if checks["status"] == "ok" else 503
        return JSONResponse(content=checks, status_code=status_code)

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "docs": "/docs",
            "health": "/health",
        }

    # Register all service routers
    app.include_router(auth_router)
    app.include_router(user_router)
    app.include_router(professional_router)
    app.include_router(catalog_router)
    app.include_router(booking_router)
    app.include_router(message_router)
    app.include_router(requirement_router)

    # ── Prometheus Metrics ─────────────────────────────────────────
    if settings.METRICS_ENABLED:
        Instrumentator().instrument(app).expose(app, endpoint="/metrics", tags=["Monitoring"])

    return app


# ── Entry Point ───────────────────────────────────────────────

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=1 if settings.DEBUG else settings.WORKERS,
        log_level="debug" if settings.DEBUG else "info",
        access_log=True,
    )
