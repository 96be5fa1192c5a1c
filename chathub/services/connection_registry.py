"""Process-wide registry of live connections and their user bindings."""
from __future__ import annotations

import asyncio

from ..exceptions import ConnectionNotFound, DuplicateConnection
from ..models import Connection, ConnectionState


class ConnectionRegistry:
    """Tracks live connections keyed by id, with a secondary index by user."""

    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}
        self._users: dict[str, set[str]] = {}
        self._lock = asyncio.Lock()

    async def register(self, connection_id: str, user_id: str = "", authentication: str = "") -> Connection:
        async with self._lock:
            if connection_id in self._connections:
                raise DuplicateConnection(connection_id)
            pending = Connection(connection_id=connection_id, user_id=user_id or "", authentication=authentication)
            connection = pending.transition(ConnectionState.CONNECTED)
            self._connections[connection_id] = connection
            if connection.user_id:
                self._users.setdefault(connection.user_id, set()).add(connection_id)
            return connection

    async def unregister(self, connection_id: str) -> Connection | None:
        async with self._lock:
            connection = self._connections.pop(connection_id, None)
            if connection is None:
                return None
            if connection.user_id:
                owned = self._users.get(connection.user_id)
                if owned is not None:
                    owned.discard(connection_id)
                    if not owned:
                        self._users.pop(connection.user_id, None)
            return connection.transition(ConnectionState.DISCONNECTED)

    async def lookup(self, connection_id: str) -> Connection:
        async with self._lock:
            connection = self._connections.get(connection_id)
        if connection is None:
            raise ConnectionNotFound(connection_id)
        return connection

    async def contains(self, connection_id: str) -> bool:
        async with self._lock:
            return connection_id in self._connections

    async def connections_for_user(self, user_id: str) -> set[str]:
        if not user_id:
            return set()
        async with self._lock:
            return set(self._users.get(user_id, ()))

    async def snapshot(self) -> frozenset[str]:
        """Ids of every connection live at the time of the call."""

        async with self._lock:
            return frozenset(self._connections)

    async def count(self) -> int:
        async with self._lock:
            return len(self._connections)

    async def clear(self) -> list[Connection]:
        async with self._lock:
            removed = [item.transition(ConnectionState.DISCONNECTED) for item in self._connections.values()]
            self._connections.clear()
            self._users.clear()
            return removed


__all__ = ["ConnectionRegistry"]
