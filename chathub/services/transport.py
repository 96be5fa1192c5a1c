"""WebSocket transport that delivers serialized frames to live sockets."""
from __future__ import annotations

import asyncio
import logging
import secrets
from typing import Protocol

from fastapi import WebSocket, status

from ..exceptions import ConnectionNotFound

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Delivery collaborator used by the message router."""

    async def attach(self, websocket: WebSocket) -> str: ...

    async def detach(self, connection_id: str) -> None: ...

    async def send(self, connection_id: str, frame: str) -> None: ...

    async def close(self, connection_id: str, code: int = status.WS_1000_NORMAL_CLOSURE) -> None: ...

    async def close_all(self) -> None: ...


class WebSocketTransport:
    """Owns the socket handle behind each connection id."""

    def __init__(self) -> None:
        self._sockets: dict[str, WebSocket] = {}
        self._lock = asyncio.Lock()

    async def attach(self, websocket: WebSocket) -> str:
        """Accept the socket and bind it to a fresh connection id."""

        await websocket.accept()
        async with self._lock:
            connection_id = _new_connection_id()
            while connection_id in self._sockets:
                connection_id = _new_connection_id()
            self._sockets[connection_id] = websocket
        return connection_id

    async def detach(self, connection_id: str) -> None:
        async with self._lock:
            self._sockets.pop(connection_id, None)

    async def send(self, connection_id: str, frame: str) -> None:
        async with self._lock:
            websocket = self._sockets.get(connection_id)
        if websocket is None:
            raise ConnectionNotFound(connection_id)
        await websocket.send_text(frame)

    async def close(self, connection_id: str, code: int = status.WS_1000_NORMAL_CLOSURE) -> None:
        async with self._lock:
            websocket = self._sockets.pop(connection_id, None)
        if websocket is None:
            return
        try:
            await websocket.close(code=code)
        except RuntimeError:
            # Already closed by the peer.
            logger.debug("Socket for %s was already closed", connection_id)

    async def close_all(self) -> None:
        async with self._lock:
            connection_ids = list(self._sockets)
        for connection_id in connection_ids:
            await self.close(connection_id, code=status.WS_1001_GOING_AWAY)


def _new_connection_id() -> str:
    return secrets.token_urlsafe(16)


__all__ = ["Transport", "WebSocketTransport"]
