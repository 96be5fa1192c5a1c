"""Domain values for the relay."""
from .connection import Connection, ConnectionState
from .message import InvocationContext, Message, NegotiationResult
from .selector import ALL, AllClients, ConnectionTarget, GroupTarget, Selector, UserTarget

__all__ = [
    "ALL",
    "AllClients",
    "Connection",
    "ConnectionState",
    "ConnectionTarget",
    "GroupTarget",
    "InvocationContext",
    "Message",
    "NegotiationResult",
    "Selector",
    "UserTarget",
]
