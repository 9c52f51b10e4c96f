"""
Course Marketplace Backend - Main FastAPI Application

REST backend for browsing, enrolling in and reviewing courses:
- Catalog reads served through an in-process TTL cache
- Writes commit, invalidate related cache entries, then publish domain events
- Structured logging with correlation IDs, Prometheus metrics, tracing spans
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry import trace
import structlog

from .constants import APP_NAME
from .core.config import get_settings
from .core.correlation import CorrelationIdMiddleware
from .core.database import get_database_manager
from .core.exceptions import (
    InfrastructureError,
    MarketplaceException,
    NotFoundError,
)
from .core.logging import configure_logging
from .middleware.security import SecurityHeadersMiddleware
from .services.events.event_bus import get_event_bus
from .services.events.observers import register_default_observers
from .api.endpoints.auth import router as auth_router
from .api.endpoints.categories import router as categories_router
from .api.endpoints.courses import router as courses_router
from .api.endpoints.health import router as health_router
from .api.endpoints.pricing import router as pricing_router

logger = structlog.get_logger()
settings = get_settings()
configure_logging(settings)


# Application lifecycle management
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the database and attach the built-in event observers."""
    logger.info(
        "Starting Course Marketplace API",
        version=settings.SERVICE_VERSION,
        environment=settings.ENVIRONMENT,
    )

    database = get_database_manager()
    try:
        # First-run bootstrap; there are no migrations
        await database.initialize(create_schema=True)
    except Exception:
        logger.exception("Failed to initialize application")
        raise

    observers = register_default_observers(get_event_bus())

    yield

    # Shutdown
    logger.info("Shutting down Course Marketplace API")
    for observer in observers:
        observer.unregister()

    try:
        await database.close()
        logger.info("Application shutdown completed")
    except Exception as e:
        logger.error("Error during application shutdown", error=str(e))


# Create FastAPI application
app = FastAPI(
    title=f"{APP_NAME} API",
    description="Course marketplace backend",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
)

# Security headers middleware - MUST be first
app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Correlation ID middleware for request tracking
app.add_middleware(CorrelationIdMiddleware)

# Include API routers
app.include_router(health_router, tags=["health"])
app.include_router(auth_router, tags=["auth"])
app.include_router(courses_router, tags=["courses"])
app.include_router(categories_router, tags=["categories"])
app.include_router(pricing_router, tags=["pricing"])


@app.get("/api")
async def api_index():
    """API index."""
    return {
        "name": f"{APP_NAME} API",
        "version": settings.SERVICE_VERSION,
        "endpoints": {
            "auth": "/api/auth",
            "courses": "/api/courses",
            "categories": "/api/categories",
            "pricing": "/api/pricing/quote",
            "health": "/health",
            "metrics": "/metrics",
        },
    }


def _error_response(status_code: int, message: str, code: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, "code": code})


@app.exception_handler(MarketplaceException)
async def marketplace_exception_handler(request: Request, exc: MarketplaceException):
    """Translate domain errors into ``{"error", "code"}`` bodies."""
    log_fields = {
        "path": request.url.path,
        "method": request.method,
        "code": exc.error_code,
        "error": exc.message,
    }
    if isinstance(exc, InfrastructureError):
        logger.error("Infrastructure failure", **log_fields, exc_info=exc)
        span = trace.get_current_span()
        span.set_status(trace.Status(trace.StatusCode.ERROR, exc.message))
    elif isinstance(exc, NotFoundError):
        logger.debug("Resource not found", **log_fields)
    else:
        logger.info("Request rejected", **log_fields)

    return _error_response(exc.status_code, exc.message, exc.error_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if location:
        message = f"{location}: {message}"

    logger.info("Request validation failed", path=request.url.path, error=message)
    return _error_response(400, message, "VALIDATION_ERROR")


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Generic 500; details are only exposed outside production."""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=exc,
    )
    message = str(exc) if settings.is_development else "Internal server error"
    return _error_response(500, message, "INTERNAL_ERROR")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)
