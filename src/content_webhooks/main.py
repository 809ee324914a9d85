"""
Module: main.py
Description: FastAPI application entry point for the webhook API.

Initializes the FastAPI application with all routes, error handlers and
the delivery worker pool lifecycle.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from mangum import Mangum

from content_webhooks.config.settings import settings
from content_webhooks.engine import get_engine
from content_webhooks.exceptions import ConfigurationError
from content_webhooks.handlers.content_events import router as content_events_router
from content_webhooks.handlers.webhooks import router as webhooks_router
from content_webhooks.utils.logger import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start delivery workers with the app and stop them on shutdown."""
    logger.info(
        "Starting Content Webhooks",
        version=settings.app_version,
        stage=settings.stage,
        queue_backend=settings.queue_backend
    )
    engine = get_engine()
    engine.start_workers()
    try:
        yield
    finally:
        engine.stop_workers()
        logger.info("Shutting down Content Webhooks")


# Initialize FastAPI app
app = FastAPI(
    title="Content Webhooks",
    description="Webhook dispatch engine notifying frontends of content changes",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Include routers
app.include_router(webhooks_router)
app.include_router(content_events_router)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "message": "Content Webhooks is healthy",
        "version": settings.app_version,
        "environment": settings.stage
    }


def _error(code: int, message, error_type: str) -> JSONResponse:
    return JSONResponse(
        status_code=code,
        content={
            "error": {
                "code": code,
                "message": message,
                "type": error_type
            }
        }
    )


# Global exception handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Log HTTP exceptions and return structured error responses."""
    logger.warning(
        "HTTP exception occurred",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
        method=request.method
    )
    return _error(exc.status_code, exc.detail, "http_exception")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return 400 with field errors for malformed request bodies."""
    errors = [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    logger.warning("Request validation failed", path=request.url.path, errors=errors)
    return _error(400, errors, "validation_error")


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    return _error(400, exc.message, "configuration_error")


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error(
        "Unhandled exception occurred",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method
    )
    return _error(500, "Internal server error", "internal_error")


# Lambda handler
handler = Mangum(app, lifespan="off")
