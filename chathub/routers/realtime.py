"""WebSocket endpoint clients connect to after negotiation."""
from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError

from ..exceptions import DuplicateConnection, InvalidAccessToken, InvalidInvocation, UnknownInvocation
from ..models import InvocationContext
from ..schemas import CompletionFrame, InvocationFrame
from ..services import Hub, authorization_from, get_hub

router = APIRouter()
logger = logging.getLogger(__name__)

QUERY_TOKEN_AUTHENTICATION = "access_token"


@router.websocket("/client")
@router.websocket("/client/")
async def client_socket(
    websocket: WebSocket,
    hub_name: str | None = Query(None, alias="hub"),
    access_token: str | None = Query(None),
) -> None:
    hub = get_hub()
    if hub_name is not None and hub_name != hub.name:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    user_id = ""
    if access_token:
        try:
            user_id = hub.negotiation.decode_access_token(access_token)
        except InvalidAccessToken:
            logger.info("Rejected socket from %s: invalid access token", websocket.client)
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return

    headers = dict(websocket.headers)
    if access_token:
        # The token is never announced to other clients.
        supplied = authorization_from(headers)
        if not supplied or access_token in supplied:
            headers = {name: value for name, value in headers.items() if name.lower() != "authorization"}
            headers["authorization"] = QUERY_TOKEN_AUTHENTICATION

    connection_id = await hub.transport.attach(websocket)
    try:
        connection = await hub.events.on_connected(connection_id, headers, user_id=user_id)
    except DuplicateConnection:
        logger.exception("Transport produced a live connection id twice")
        await hub.transport.close(connection_id, code=status.WS_1011_INTERNAL_ERROR)
        return
    if connection is None:
        await hub.transport.close(connection_id)
        return

    context = InvocationContext(connection_id=connection_id, user_id=connection.user_id)
    try:
        while True:
            try:
                raw = await websocket.receive_text()
            except WebSocketDisconnect:
                break
            except Exception:
                logger.exception("Receive failed on %s", connection_id)
                break
            await _handle_frame(hub, context, websocket, raw)
    finally:
        await hub.events.on_disconnected(connection_id)
        await hub.transport.detach(connection_id)


async def _handle_frame(hub: Hub, context: InvocationContext, websocket: WebSocket, raw: str) -> None:
    if raw.strip().lower() == "ping":
        await _send(websocket, {"type": "pong"})
        return

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        await _send(websocket, {"type": "error", "error": "Frames must be JSON"})
        return
    if not isinstance(payload, dict):
        await _send(websocket, {"type": "error", "error": "Frames must be JSON objects"})
        return

    message_type = (payload.get("type") or "").lower()
    if message_type == "ping":
        await _send(websocket, {"type": "pong"})
        return
    if message_type != "invocation":
        # Anything else just keeps the connection alive.
        return

    try:
        frame = InvocationFrame.model_validate(payload)
    except ValidationError as exc:
        await _send(websocket, {"type": "error", "error": f"Malformed invocation: {exc.error_count()} error(s)"})
        return

    error: str | None = None
    try:
        await hub.invoke(context, frame.target, frame.arguments)
    except (UnknownInvocation, InvalidInvocation) as exc:
        logger.info("Invocation %s from %s rejected: %s", frame.target, context.connection_id, exc)
        error = str(exc)

    if frame.invocation_id:
        await _send(websocket, CompletionFrame(invocation_id=frame.invocation_id, error=error).to_wire())
    elif error:
        await _send(websocket, {"type": "error", "error": error})


async def _send(websocket: WebSocket, payload: dict[str, Any]) -> None:
    await websocket.send_text(json.dumps(payload))


__all__ = ["router"]
