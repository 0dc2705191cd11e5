"""
FastAPI Application Entry Point

This module initializes the FastAPI application and configures:
- API routes (public and admin)
- Middleware (logging, CORS)
- Exception handlers that keep every error in the
  ``{"success": false, "error": ...}`` envelope
- Application metadata

Design Decisions:
- Clean separation: Routes, middleware, and app config are separate
- Schema is owned by Alembic; AUTO_CREATE_TABLES is a local-development shortcut
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from qrlink.api import admin, endpoints
from qrlink.core.rate_limit import limiter
from qrlink.core.setting import settings
from qrlink.db.session import engine, init_db
from qrlink.middleware.logging import add_logging_middleware

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger("qrlink")

VERSION = "1.0.0"

# Messages for required fields, keyed by field name
REQUIRED_FIELD_MESSAGES = {
    "target_url": "URL is required",
    "password": "Password is required",
}

app = FastAPI(
    title="QR Link Service",
    description="QR code generator with short-link redirects and scan analytics",
    version=VERSION,
    docs_url="/docs",  # Swagger UI documentation
    redoc_url="/redoc",  # ReDoc documentation
)

app.state.limiter = limiter


def error_response(status_code: int, error: str, headers=None, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, **extra},
        headers=headers,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    Wrap HTTPException in the error envelope.

    A dict detail carries extra fields (resetTime, remainingAttempts) that
    are merged into the body next to ``error``.
    """
    if isinstance(exc.detail, dict):
        extra = dict(exc.detail)
        error = extra.pop("error", "Request failed")
        return error_response(exc.status_code, error, headers=exc.headers, **extra)
    return error_response(exc.status_code, str(exc.detail), headers=exc.headers)


def validation_message(error: dict) -> str:
    error_type = error.get("type")
    loc = error.get("loc", ())

    if error_type == "json_invalid":
        return "Invalid JSON in request body"

    if error_type == "missing":
        field = loc[-1] if loc else None
        if field == "body":
            return "Request body is required"
        if field in REQUIRED_FIELD_MESSAGES:
            return REQUIRED_FIELD_MESSAGES[field]
        return f"{field} is required"

    return error.get("msg", "Invalid request")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report request validation failures as 400 with readable messages."""
    messages = []
    for error in exc.errors():
        message = validation_message(error)
        if message not in messages:
            messages.append(message)
    return error_response(status.HTTP_400_BAD_REQUEST, ", ".join(messages))


@app.exception_handler(RateLimitExceeded)
async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit exceeded on {request.url.path}: {exc.detail}")
    return error_response(
        status.HTTP_429_TOO_MANY_REQUESTS,
        f"Too many requests. Rate limit: {exc.detail}"
    )


add_logging_middleware(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Health"])
async def root():
    """
    Root endpoint for health checks.

    Returns:
        Simple JSON response indicating service is running
    """
    return {
        "message": "QR Link Service",
        "version": VERSION,
        "docs": "/docs"
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint for monitoring.

    Returns:
        Health status of the service, 503 when the database is unreachable
    """
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "database": "unreachable"}
        )
    return {"status": "healthy", "database": "ok"}


app.include_router(endpoints.router, tags=["QR Codes"])
app.include_router(admin.router, tags=["Admin"])


@app.on_event("startup")
async def startup_event():
    """Create tables on startup when configured to."""
    if settings.AUTO_CREATE_TABLES:
        await init_db()
    logger.info(f"QR Link Service started ({settings.ENV_SETTING.value})")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    await engine.dispose()
