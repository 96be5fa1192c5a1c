"""Index page and service diagnostics."""
from __future__ import annotations

import asyncio

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import HTMLResponse

from ..config import get_settings
from ..schemas import HealthResponse
from ..services import get_hub

router = APIRouter(tags=["system"])


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def index() -> HTMLResponse:
    index_path = get_settings().wwwroot / "index.html"
    try:
        content = await asyncio.to_thread(index_path.read_text, encoding="utf-8")
    except FileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Index page not found") from exc
    return HTMLResponse(content)


@router.get("/api")
def api_info() -> dict[str, str]:
    settings = get_settings()
    return {"service": settings.app_name, "version": settings.api_version}


@router.get("/health", response_model=HealthResponse)
async def healthcheck() -> HealthResponse:
    hub = get_hub()
    stats = await hub.stats()
    return HealthResponse(status="ok", hub=hub.name, connections=stats["connections"], groups=stats["groups"])


__all__ = ["router"]
