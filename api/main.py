"""
Interio Estimator API - FastAPI Main Application
Pricing grids, treatment pricing and window summary persistence
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.config import config
from api.security_config import get_allowed_origins, get_allowed_hosts, EXPOSE_HEADERS
from interio_estimator_core import __version__ as CORE_VERSION
from interio_estimator_core.infra import check_database_health, get_db

# Routers
from api.routers import grids, pricing, summaries

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.APP_LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Application metadata
APP_NAME = "Interio Estimator API"
APP_VERSION = "1.0.0"
APP_DESCRIPTION = "Pricing grid resolution and curtain worksheet enrichment"


class ErrorResponse(BaseModel):
    """Standard error response model"""
    code: str
    message: str
    hint: Optional[str] = None
    traceId: str
    meta: Dict[str, Any]


class AppContext:
    """Application context manager"""
    def __init__(self):
        self.start_time = time.time()
        self.ready = False

    async def startup(self):
        """Initialize application resources"""
        logger.info("Starting Interio Estimator API...")
        get_db().create_tables()
        self.ready = True
        logger.info(f"Interio Estimator API started (env={config.APP_ENV}, core={CORE_VERSION})")

    async def shutdown(self):
        """Cleanup application resources"""
        logger.info("Shutting down Interio Estimator API...")
        get_db().close()
        self.ready = False


# Initialize application context
app_context = AppContext()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    await app_context.startup()
    yield
    await app_context.shutdown()


# Create FastAPI application
app = FastAPI(
    title=APP_NAME,
    version=APP_VERSION,
    description=APP_DESCRIPTION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# Configure CORS with whitelist
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    expose_headers=EXPOSE_HEADERS
)

# Configure trusted hosts with whitelist
app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=get_allowed_hosts()
)

# Configure rate limiting
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[config.RATE_LIMIT_DEFAULT],
    storage_uri="memory://"
)
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)


def _trace_id(request: Request) -> str:
    return getattr(request.state, "trace_id", str(uuid.uuid4()))


def _error(request: Request, status_code: int, code: str, message: str, hint: Optional[str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(ErrorResponse(
            code=code,
            message=message,
            hint=hint,
            traceId=_trace_id(request),
            meta={"dedupKey": f"{code.lower()}_{request.url.path}_{status_code}"}
        ))
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Handle rate limit exceeded"""
    return _error(
        request,
        status.HTTP_429_TOO_MANY_REQUESTS,
        "RATE_LIMIT_EXCEEDED",
        "Too many requests",
        "Please wait before making more requests",
    )


# Middleware for trace ID injection
@app.middleware("http")
async def inject_trace_id(request: Request, call_next):
    """Inject trace ID into all requests and responses"""
    trace_id = request.headers.get("X-Trace-Id", str(uuid.uuid4()))

    logger_adapter = logging.LoggerAdapter(logger, {"trace_id": trace_id})
    request.state.logger = logger_adapter
    request.state.trace_id = trace_id

    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time

    response.headers["X-Trace-Id"] = trace_id
    response.headers["X-Process-Time"] = str(process_time)

    logger_adapter.info(
        f"[{trace_id}] {request.method} {request.url.path} - {response.status_code} - {process_time:.3f}s"
    )

    return response


# Exception handlers
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors"""
    errors = exc.errors()
    return _error(
        request,
        status.HTTP_400_BAD_REQUEST,
        "VALIDATION_ERROR",
        "Invalid request parameters",
        str(errors[0]["msg"]) if errors else None,
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions"""
    detail = exc.detail if isinstance(exc.detail, dict) else {}
    return _error(
        request,
        exc.status_code,
        detail.get("code", "HTTP_ERROR"),
        detail.get("message", str(exc.detail)),
        detail.get("hint"),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return _error(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        "An internal error occurred",
        "Please contact support with the trace ID",
    )


@app.get("/healthz")
async def health_check():
    """Liveness check"""
    return JSONResponse(
        content={
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": time.time() - app_context.start_time
        }
    )


@app.get("/readyz")
async def readiness_check(request: Request):
    """Readiness check with database validation"""
    trace_id = _trace_id(request)

    if not app_context.ready:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "message": "Application not ready",
                "traceId": trace_id
            }
        )

    db_health = check_database_health()
    if db_health.get("status") != "healthy":
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "degraded",
                "db": db_health.get("status"),
                "db_error": db_health.get("error"),
                "ts": datetime.now(timezone.utc).isoformat(),
                "traceId": trace_id
            }
        )

    return JSONResponse(
        content={
            "status": "ok",
            "db": "ok",
            "tables": db_health.get("tables", []),
            "ts": datetime.now(timezone.utc).isoformat(),
            "traceId": trace_id
        }
    )


# All /v1 endpoints authenticate through their router dependencies
app.include_router(grids.router)
app.include_router(pricing.router)
app.include_router(summaries.router)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "description": APP_DESCRIPTION,
        "docs": "/docs",
        "health": "/healthz",
        "ready": "/readyz"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=config.APP_PORT,
        reload=config.is_development(),
        log_level=config.APP_LOG_LEVEL.lower()
    )
