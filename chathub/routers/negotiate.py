"""Negotiation endpoint issuing the descriptor a client connects with."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Header, Response

from ..schemas import NegotiateResponse
from ..services import get_hub

router = APIRouter(tags=["negotiate"])
logger = logging.getLogger(__name__)


@router.post("/negotiate", response_class=Response)
async def negotiate(user_id: str | None = Header(None, alias="userId")) -> Response:
    """Return ``{url, accessToken}`` for the caller, bound to ``userId`` when given."""

    logger.info("Negotiate request processed (user=%s)", user_id or "<anonymous>")
    result = get_hub().negotiation.negotiate(user_id)
    body = NegotiateResponse(url=result.url, access_token=result.access_token)
    return Response(content=body.model_dump_json(by_alias=True).encode("utf-8"), media_type="application/octet-stream")


__all__ = ["router"]
