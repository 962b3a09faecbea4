# src/instafeed/main.py
"""Main entry point for the instafeed application."""

from __future__ import annotations

import logging
import time
from urllib.parse import urlsplit

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from instafeed.api.v1.router import api_v1
from instafeed.core.errors import error_body
from instafeed.core.logging import configure_logging
from instafeed.core.settings import settings

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="instafeed API",
    description="Image feed with likes, comments and follows",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)


@app.middleware("http")
async def log_and_contain_errors(request: Request, call_next):
    """Log each request and turn unhandled exceptions into a 500 error body."""
    start_time = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        response = JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )
    elapsed_ms = (time.perf_counter() - start_time) * 1000
    logger.info(
        "%s %s -> %d in %.2f ms",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors as ``{"error": ...}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed input as a 400 naming the first offending field."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = first.get("loc") or ("request",)
    field = str(location[-1])
    if first.get("type") == "missing":
        message = f"{field} is required"
    else:
        message = f"Invalid {field}"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


# Include API routers
app.include_router(api_v1, prefix="/api/v1")

if settings.storage_backend == "local":
    media_mount = urlsplit(settings.media_base_url).path.rstrip("/") or "/media"
    app.mount(
        media_mount,
        StaticFiles(directory=settings.media_root, check_dir=False),
        name="media",
    )


@app.on_event("startup")
async def on_startup() -> None:
    logger.info(
        "Starting %s %s (storage=%s)",
        settings.app_name,
        settings.app_version,
        settings.storage_backend,
    )


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("instafeed.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
