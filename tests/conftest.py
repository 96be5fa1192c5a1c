"""Shared fixtures for the relay test-suite."""
from __future__ import annotations

import asyncio
import json
import os
from collections import defaultdict
from typing import Any, Awaitable, Callable

import pytest

os.environ.setdefault("HUB_SIGNING_KEY", "test-signing-key")

from chathub.config import Settings  # noqa: E402
from chathub.exceptions import ConnectionNotFound  # noqa: E402
from chathub.services import Hub  # noqa: E402


class RecordingTransport:
    """In-memory transport that records every frame per connection."""

    def __init__(self) -> None:
        self.inbox: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.stale: set[str] = set()
        self.slow: set[str] = set()
        self.closed: list[str] = []
        self.before_send: Callable[[str], Awaitable[None]] | None = None

    async def attach(self, websocket: Any) -> str:  # pragma: no cover - sockets are not used here
        raise NotImplementedError

    async def detach(self, connection_id: str) -> None:
        self.inbox.pop(connection_id, None)

    async def send(self, connection_id: str, frame: str) -> None:
        if self.before_send is not None:
            await self.before_send(connection_id)
        if connection_id in self.stale:
            raise ConnectionNotFound(connection_id)
        if connection_id in self.slow:
            await asyncio.sleep(5)
        self.inbox[connection_id].append(json.loads(frame))

    async def close(self, connection_id: str, code: int = 1000) -> None:
        self.closed.append(connection_id)

    async def close_all(self) -> None:
        self.closed.extend(self.inbox)

    def events(self, connection_id: str, target: str | None = None) -> list[dict[str, Any]]:
        frames = self.inbox.get(connection_id, [])
        return [frame["arguments"][0] for frame in frames if target is None or frame["target"] == target]


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def settings() -> Settings:
    return Settings(HUB_NAME="chat", PUBLIC_BASE_URL="https://relay.example.com", SEND_TIMEOUT_SECONDS=0.2)


@pytest.fixture
def hub(settings: Settings, transport: RecordingTransport) -> Hub:
    return Hub(settings, transport=transport)
