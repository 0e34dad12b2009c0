"""
FastAPI main application for Smart Checker.

This application exposes the hybrid checking pipeline over HTTP: check a
buffer, manage checker settings, inspect remote availability and recent
check results.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import traceback
import logging
import os

from .api import check, history, remote, settings, system
from .services.shared import get_orchestrator, shutdown_shared_services
from ._version import __version__

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Remote availability is known before the first check is served
    await get_orchestrator().probe_remote()
    yield
    await shutdown_shared_services()
    logger.info("🛑 Shared services closed")


app = FastAPI(
    title="Smart Checker API",
    description="API for checking source-code buffers with remote services and a local heuristic engine",
    version=__version__,
    lifespan=lifespan,
)

# Add request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"🌐 HTTP {request.method} {request.url.path}")
    response = await call_next(request)
    logger.info(f"🌐 Response: {response.status_code}")
    return response

# Global exception handler so unexpected failures still return a JSON body
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log the full stack trace and return a structured error."""

    full_traceback = traceback.format_exc()

    logger.error(f"🚨 UNHANDLED ERROR in {request.method} {request.url}")
    logger.error(f"🚨 Exception: {exc}")
    logger.error(f"🚨 FULL STACK TRACE:\n{full_traceback}")

    error_response = {
        "detail": f"{type(exc).__name__}: {str(exc)}",
        "error_type": type(exc).__name__,
        "error_message": str(exc),
        "request_url": str(request.url),
        "request_method": request.method
    }

    return JSONResponse(
        status_code=500,
        content=error_response
    )

# Allow all origins if CORS_ORIGINS is "*" (for development/testing)
# Otherwise split comma-separated list of allowed origins
cors_origins_env = os.getenv("CORS_ORIGINS", "*")
allowed_origins = ["*"] if cors_origins_env == "*" else cors_origins_env.split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(check.router, prefix="/api/check", tags=["check"])
app.include_router(settings.router, prefix="/api", tags=["settings"])
app.include_router(remote.router, prefix="/api/remote", tags=["remote"])
app.include_router(history.router, prefix="/api/history", tags=["history"])
app.include_router(system.router, prefix="/api/system", tags=["system"])

@app.get("/")
async def root():
    """Health check endpoint with version info."""
    return {"message": "Smart Checker API", "status": "running", "version": __version__}

@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy", "version": __version__}
