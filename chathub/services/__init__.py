"""Convenience exports for service layer."""
from .connection_registry import ConnectionRegistry
from .event_dispatcher import EventDispatcher, LifecycleEvent, LifecycleKind, authorization_from
from .group_store import GroupMembershipStore
from .hub import Hub, get_hub, shutdown_hub
from .message_router import DispatchReport, MessageRouter, NEW_CONNECTION_EVENT, NEW_MESSAGE_EVENT
from .negotiation_service import NegotiationService
from .transport import Transport, WebSocketTransport

__all__ = [
    "ConnectionRegistry",
    "DispatchReport",
    "EventDispatcher",
    "GroupMembershipStore",
    "Hub",
    "LifecycleEvent",
    "LifecycleKind",
    "MessageRouter",
    "NEW_CONNECTION_EVENT",
    "NEW_MESSAGE_EVENT",
    "NegotiationService",
    "Transport",
    "WebSocketTransport",
    "authorization_from",
    "get_hub",
    "shutdown_hub",
]
