"""Connection lifecycle handling for the relay."""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Mapping

from ..exceptions import AuthenticationMissing
from ..models import ALL, Connection, ConnectionState
from ..schemas import NewConnectionPayload
from .connection_registry import ConnectionRegistry
from .group_store import GroupMembershipStore
from .message_router import NEW_CONNECTION_EVENT, MessageRouter, build_event

logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER = "authorization"


class LifecycleKind(str, enum.Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


@dataclass(frozen=True)
class LifecycleEvent:
    kind: LifecycleKind
    connection: Connection


LifecycleHandler = Callable[[LifecycleEvent], Awaitable[None]]


def authorization_from(headers: Mapping[str, str]) -> str:
    """Return the Authorization header value, matched case-insensitively."""

    for name, value in headers.items():
        if name.lower() == AUTHORIZATION_HEADER:
            return (value or "").strip()
    return ""


class EventDispatcher:
    def __init__(self, registry: ConnectionRegistry, groups: GroupMembershipStore, router: MessageRouter) -> None:
        self._registry = registry
        self._groups = groups
        self._router = router
        self._handlers: list[LifecycleHandler] = []

    def subscribe(self, handler: LifecycleHandler) -> None:
        self._handlers.append(handler)

    async def on_connected(
        self,
        connection_id: str,
        headers: Mapping[str, str],
        user_id: str = "",
    ) -> Connection | None:
        """Move a handshaking connection to ``connected``.

        Returns ``None`` when the handshake carried no Authorization value;
        the connection is then dropped without registering it or notifying
        anyone.
        """

        pending = Connection(connection_id=connection_id, user_id=user_id or "")
        try:
            pending = self._authenticate(pending, headers)
        except AuthenticationMissing:
            logger.debug("Dropping %s: no Authorization header on connect", connection_id)
            return None

        connection = await self._registry.register(
            pending.connection_id,
            user_id=pending.user_id,
            authentication=pending.authentication,
        )
        logger.info("%s has connected", connection_id)

        await self._notify(LifecycleEvent(LifecycleKind.CONNECTED, connection))
        payload = NewConnectionPayload(connection_id=connection_id, authentication=connection.authentication)
        await self._router.dispatch(ALL, build_event(NEW_CONNECTION_EVENT, payload.to_wire()))
        return connection

    async def on_disconnected(self, connection_id: str) -> Connection | None:
        connection = await self._registry.unregister(connection_id)
        if connection is None:
            return None
        await self._groups.remove_connection(connection_id)
        logger.info("%s has disconnected", connection_id)
        # Other clients are not told about disconnects.
        await self._notify(LifecycleEvent(LifecycleKind.DISCONNECTED, connection))
        return connection

    @staticmethod
    def _authenticate(pending: Connection, headers: Mapping[str, str]) -> Connection:
        auth = authorization_from(headers)
        if not auth:
            raise AuthenticationMissing(pending.connection_id)
        return Connection(
            connection_id=pending.connection_id,
            user_id=pending.user_id,
            authentication=auth,
            state=ConnectionState.CONNECTING,
            connected_at=pending.connected_at,
        )

    async def _notify(self, event: LifecycleEvent) -> None:
        for handler in list(self._handlers):
            try:
                await handler(event)
            except Exception:
                logger.exception("Lifecycle handler failed for %s (%s)", event.connection.connection_id, event.kind.value)


__all__ = ["AUTHORIZATION_HEADER", "EventDispatcher", "LifecycleEvent", "LifecycleKind", "authorization_from"]
