"""Resolve addressing selectors to connections and fan events out to them."""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any

from ..models import AllClients, ConnectionTarget, GroupTarget, Message, Selector, UserTarget
from ..schemas import NewMessagePayload, ServerInvocation
from .connection_registry import ConnectionRegistry
from .group_store import GroupMembershipStore
from .transport import Transport

logger = logging.getLogger(__name__)

NEW_MESSAGE_EVENT = "newMessage"
NEW_CONNECTION_EVENT = "newConnection"


@dataclass
class DispatchReport:
    """Outcome of one fan-out; failures map connection id to a reason."""

    selector: str
    recipients: frozenset[str]
    delivered: set[str] = field(default_factory=set)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


class MessageRouter:
    def __init__(
        self,
        registry: ConnectionRegistry,
        groups: GroupMembershipStore,
        transport: Transport,
        *,
        send_timeout: float = 5.0,
        max_concurrent_sends: int = 64,
    ) -> None:
        self._registry = registry
        self._groups = groups
        self._transport = transport
        self._send_timeout = send_timeout
        self._max_concurrent_sends = max_concurrent_sends

    async def resolve(self, selector: Selector) -> frozenset[str]:
        if isinstance(selector, AllClients):
            return await self._registry.snapshot()
        if isinstance(selector, GroupTarget):
            return frozenset(await self._groups.members_of(selector.name))
        if isinstance(selector, UserTarget):
            return frozenset(await self._registry.connections_for_user(selector.user_id))
        if isinstance(selector, ConnectionTarget):
            if await self._registry.contains(selector.connection_id):
                return frozenset({selector.connection_id})
            return frozenset()
        raise TypeError(f"Unsupported selector {selector!r}")

    async def dispatch(self, selector: Selector, event: ServerInvocation) -> DispatchReport:
        """Deliver ``event`` to every connection ``selector`` resolves to.

        Recipients are fixed when this is called; a failed send is recorded
        in the report and does not stop delivery to the others.
        """

        recipients = await self.resolve(selector)
        report = DispatchReport(selector=selector.describe(), recipients=recipients)
        if not recipients:
            return report

        frame = json.dumps(event.to_wire(), default=str)
        semaphore = asyncio.Semaphore(self._max_concurrent_sends)

        async def _deliver(connection_id: str) -> None:
            async with semaphore:
                try:
                    await asyncio.wait_for(self._transport.send(connection_id, frame), timeout=self._send_timeout)
                except asyncio.TimeoutError:
                    report.failures[connection_id] = "timeout"
                except Exception as exc:
                    report.failures[connection_id] = str(exc) or type(exc).__name__
                else:
                    report.delivered.add(connection_id)

        await asyncio.gather(*(_deliver(connection_id) for connection_id in recipients))

        if report.failures:
            logger.warning(
                "Dispatch of %s to %s failed for %d of %d recipients: %s",
                event.target,
                report.selector,
                len(report.failures),
                len(recipients),
                report.failures,
            )
        return report

    async def send_message(self, selector: Selector, message: Message) -> DispatchReport:
        payload = NewMessagePayload(
            connection_id=message.sender_connection_id,
            sender=message.sender,
            text=message.text,
        )
        return await self.dispatch(selector, build_event(NEW_MESSAGE_EVENT, payload.to_wire()))


def build_event(target: str, payload: dict[str, Any]) -> ServerInvocation:
    return ServerInvocation(target=target, arguments=[payload])


__all__ = ["DispatchReport", "MessageRouter", "NEW_CONNECTION_EVENT", "NEW_MESSAGE_EVENT", "build_event"]
