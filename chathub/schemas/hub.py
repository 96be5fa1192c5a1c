"""Wire schemas for negotiation and WebSocket frames."""
from __future__ import annotations

from typing import Any, List, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class NegotiateResponse(_CamelModel):
    url: str
    access_token: str


class NewMessagePayload(_CamelModel):
    connection_id: str
    sender: str
    text: str


class NewConnectionPayload(_CamelModel):
    connection_id: str
    authentication: str


class InvocationFrame(_CamelModel):
    """Client request to run a hub method."""

    type: Literal["invocation"] = "invocation"
    target: str = Field(..., min_length=1)
    arguments: List[Any] = Field(default_factory=list)
    invocation_id: str | None = None


class ServerInvocation(_CamelModel):
    """Server push of a client-side event such as ``newMessage``."""

    type: Literal["invocation"] = "invocation"
    target: str
    arguments: List[Any]


class CompletionFrame(_CamelModel):
    type: Literal["completion"] = "completion"
    invocation_id: str
    error: str | None = None


class HealthResponse(BaseModel):
    status: str
    hub: str
    connections: int
    groups: int


__all__ = [
    "CompletionFrame",
    "HealthResponse",
    "InvocationFrame",
    "NegotiateResponse",
    "NewConnectionPayload",
    "NewMessagePayload",
    "ServerInvocation",
]
