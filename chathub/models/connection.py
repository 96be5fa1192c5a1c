"""Connection records owned by the connection registry."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone


class ConnectionState(str, enum.Enum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


_ALLOWED_TRANSITIONS: dict[ConnectionState, frozenset[ConnectionState]] = {
    ConnectionState.CONNECTING: frozenset({ConnectionState.CONNECTED, ConnectionState.DISCONNECTED}),
    ConnectionState.CONNECTED: frozenset({ConnectionState.DISCONNECTED}),
    ConnectionState.DISCONNECTED: frozenset(),
}


@dataclass(frozen=True)
class Connection:
    """A single client's transport session.

    The user binding is fixed at creation; state changes produce a new value.
    """

    connection_id: str
    user_id: str = ""
    authentication: str = ""
    state: ConnectionState = ConnectionState.CONNECTING
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_alive(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @property
    def is_anonymous(self) -> bool:
        return not self.user_id

    def transition(self, state: ConnectionState) -> "Connection":
        if state not in _ALLOWED_TRANSITIONS[self.state]:
            raise ValueError(f"Connection {self.connection_id!r} cannot move from {self.state.value} to {state.value}")
        return replace(self, state=state)


__all__ = ["Connection", "ConnectionState"]
