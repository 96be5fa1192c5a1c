"""Domain errors raised by the relay services."""
from __future__ import annotations

__all__ = [
    "HubError",
    "NotFound",
    "ConnectionNotFound",
    "DuplicateConnection",
    "ConfigurationError",
    "AuthenticationMissing",
    "InvalidAccessToken",
    "UnknownInvocation",
    "InvalidInvocation",
]


class HubError(Exception):
    """Base class for every error the hub raises."""


class NotFound(HubError):
    """Raised when a lookup misses."""


class ConnectionNotFound(NotFound):
    def __init__(self, connection_id: str) -> None:
        super().__init__(f"Connection {connection_id!r} is not live")
        self.connection_id = connection_id


class DuplicateConnection(HubError):
    def __init__(self, connection_id: str) -> None:
        super().__init__(f"Connection {connection_id!r} is already registered")
        self.connection_id = connection_id


class ConfigurationError(HubError):
    """Raised when negotiation cannot produce a usable connection descriptor."""


class AuthenticationMissing(HubError):
    """Raised when a connect event carries no Authorization value."""


class InvalidAccessToken(HubError):
    """Raised when a presented access token fails verification."""


class UnknownInvocation(HubError):
    def __init__(self, target: str) -> None:
        super().__init__(f"Unknown hub method {target!r}")
        self.target = target


class InvalidInvocation(HubError):
    """Raised when an invocation carries the wrong arguments."""
