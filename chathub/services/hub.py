"""The relay hub: named client operations bound to the routing components."""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Sequence

from ..config import Settings, get_settings
from ..exceptions import InvalidInvocation, UnknownInvocation
from ..models import ALL, ConnectionTarget, GroupTarget, InvocationContext, Message, UserTarget
from .connection_registry import ConnectionRegistry
from .event_dispatcher import EventDispatcher
from .group_store import GroupMembershipStore
from .message_router import DispatchReport, MessageRouter
from .negotiation_service import NegotiationService
from .transport import Transport, WebSocketTransport

logger = logging.getLogger(__name__)


class Hub:
    """Owns every piece of relay state for one hub name."""

    def __init__(self, settings: Settings, transport: Transport | None = None) -> None:
        self.settings = settings
        self.name = settings.hub_name
        self.transport = transport or WebSocketTransport()
        self.registry = ConnectionRegistry()
        self.groups = GroupMembershipStore(self.registry)
        self.router = MessageRouter(
            self.registry,
            self.groups,
            self.transport,
            send_timeout=settings.send_timeout_seconds,
            max_concurrent_sends=settings.max_concurrent_sends,
        )
        self.events = EventDispatcher(self.registry, self.groups, self.router)
        self.negotiation = NegotiationService(settings)

        self._methods: dict[str, tuple[int, Callable[..., Awaitable[Any]]]] = {
            "broadcast": (1, self.broadcast),
            "sendtogroup": (2, self.send_to_group),
            "sendtouser": (2, self.send_to_user),
            "sendtoconnection": (2, self.send_to_connection),
            "joingroup": (2, self.join_group),
            "leavegroup": (2, self.leave_group),
            "joinusertogroup": (2, self.join_user_to_group),
            "leaveuserfromgroup": (2, self.leave_user_from_group),
        }

    async def broadcast(self, context: InvocationContext, message: str) -> DispatchReport:
        return await self.router.send_message(ALL, Message.from_context(context, message))

    async def send_to_group(self, context: InvocationContext, group_name: str, message: str) -> DispatchReport:
        return await self.router.send_message(GroupTarget(group_name), Message.from_context(context, message))

    async def send_to_user(self, context: InvocationContext, user_name: str, message: str) -> DispatchReport:
        return await self.router.send_message(UserTarget(user_name), Message.from_context(context, message))

    async def send_to_connection(self, context: InvocationContext, connection_id: str, message: str) -> DispatchReport:
        return await self.router.send_message(ConnectionTarget(connection_id), Message.from_context(context, message))

    async def join_group(self, context: InvocationContext, connection_id: str, group_name: str) -> None:
        if not await self.registry.contains(connection_id):
            logger.warning("%s asked to add unknown connection %s to %s", context.connection_id, connection_id, group_name)
            return
        await self.groups.add_to_group(group_name, connection_id)
        if not await self.registry.contains(connection_id):
            # Disconnected while joining; its cleanup may already have run.
            await self.groups.remove_from_group(group_name, connection_id)

    async def leave_group(self, context: InvocationContext, connection_id: str, group_name: str) -> None:
        await self.groups.remove_from_group(group_name, connection_id)

    async def join_user_to_group(self, context: InvocationContext, user_name: str, group_name: str) -> None:
        await self.groups.add_user_to_group(group_name, user_name)

    async def leave_user_from_group(self, context: InvocationContext, user_name: str, group_name: str) -> None:
        await self.groups.remove_user_from_group(group_name, user_name)

    async def invoke(self, context: InvocationContext, target: str, arguments: Sequence[Any]) -> Any:
        """Run the hub method a client frame names."""

        entry = self._methods.get(target.lower())
        if entry is None:
            raise UnknownInvocation(target)
        arity, method = entry
        if len(arguments) != arity:
            raise InvalidInvocation(f"{target} expects {arity} argument(s), got {len(arguments)}")
        if not all(isinstance(value, str) for value in arguments):
            raise InvalidInvocation(f"{target} arguments must be strings")
        return await method(context, *arguments)

    async def stats(self) -> dict[str, int]:
        return {
            "connections": await self.registry.count(),
            "groups": len(await self.groups.group_names()),
        }

    async def shutdown(self) -> None:
        await self.transport.close_all()
        removed = await self.registry.clear()
        await self.groups.clear()
        logger.info("Hub %s shut down, dropped %d connection(s)", self.name, len(removed))


_hub: Hub | None = None


def get_hub() -> Hub:
    """Return the process-wide hub, creating it on first use."""

    global _hub
    if _hub is None:
        _hub = Hub(get_settings())
    return _hub


async def shutdown_hub() -> None:
    global _hub
    if _hub is None:
        return
    hub, _hub = _hub, None
    await hub.shutdown()


__all__ = ["Hub", "get_hub", "shutdown_hub"]
