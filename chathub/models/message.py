"""Transient values passed between the hub components."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class InvocationContext:
    """Identity of the connection that invoked a hub method."""

    connection_id: str
    user_id: str = ""


@dataclass(frozen=True)
class Message:
    sender_connection_id: str
    sender: str
    text: str

    @classmethod
    def from_context(cls, context: InvocationContext, text: str) -> "Message":
        return cls(sender_connection_id=context.connection_id, sender=context.user_id or "", text=text)


@dataclass(frozen=True)
class NegotiationResult:
    url: str
    access_token: str
    user_id: str | None = None


__all__ = ["InvocationContext", "Message", "NegotiationResult"]
