"""Pydantic schemas shared by the routers and the hub."""
from .hub import (
    CompletionFrame,
    HealthResponse,
    InvocationFrame,
    NegotiateResponse,
    NewConnectionPayload,
    NewMessagePayload,
    ServerInvocation,
)

__all__ = [
    "CompletionFrame",
    "HealthResponse",
    "InvocationFrame",
    "NegotiateResponse",
    "NewConnectionPayload",
    "NewMessagePayload",
    "ServerInvocation",
]
