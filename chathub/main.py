"""Application entry point for the relay service."""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .exceptions import ConfigurationError
from .routers import negotiate_router, realtime_router, system_router
from .services import get_hub, shutdown_hub

logger = logging.getLogger(__name__)

settings = get_settings()

app = FastAPI(title=settings.app_name, version=settings.api_version)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(system_router)
app.include_router(negotiate_router)
app.include_router(realtime_router)


@app.exception_handler(ConfigurationError)
async def _configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error("Configuration error on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Realtime service is not configured"},
    )


@app.on_event("startup")
async def _startup() -> None:
    """Create the process-wide hub before serving."""

    hub = get_hub()
    logger.info("Hub %s ready", hub.name)


@app.on_event("shutdown")
async def _shutdown() -> None:
    """Close live sockets and drop all relay state."""

    await shutdown_hub()
