"""Named group membership for fan-out addressing.

A group holds two kinds of members: raw connection ids and user ids. User
members are resolved to connections through the registry each time the group
is read, so connections a user opens after joining are included.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from .connection_registry import ConnectionRegistry


@dataclass
class _Group:
    connections: set[str] = field(default_factory=set)
    users: set[str] = field(default_factory=set)

    def is_empty(self) -> bool:
        return not self.connections and not self.users


class GroupMembershipStore:
    """Maps group names to member connections and member users."""

    def __init__(self, registry: ConnectionRegistry) -> None:
        self._registry = registry
        self._groups: dict[str, _Group] = {}
        self._lock = asyncio.Lock()

    async def add_to_group(self, group_name: str, connection_id: str) -> None:
        async with self._lock:
            self._groups.setdefault(group_name, _Group()).connections.add(connection_id)

    async def remove_from_group(self, group_name: str, connection_id: str) -> None:
        async with self._lock:
            group = self._groups.get(group_name)
            if group is None:
                return
            group.connections.discard(connection_id)
            self._drop_if_empty(group_name, group)

    async def add_user_to_group(self, group_name: str, user_id: str) -> None:
        async with self._lock:
            self._groups.setdefault(group_name, _Group()).users.add(user_id)

    async def remove_user_from_group(self, group_name: str, user_id: str) -> None:
        async with self._lock:
            group = self._groups.get(group_name)
            if group is None:
                return
            group.users.discard(user_id)
            self._drop_if_empty(group_name, group)

    async def members_of(self, group_name: str) -> set[str]:
        """Resolve a group to the connection ids that are live right now."""

        async with self._lock:
            group = self._groups.get(group_name)
            if group is None:
                return set()
            connection_ids = set(group.connections)
            user_ids = set(group.users)

        live = await self._registry.snapshot()
        members = connection_ids & live
        for user_id in user_ids:
            members |= await self._registry.connections_for_user(user_id)
        return members

    async def remove_connection(self, connection_id: str) -> list[str]:
        """Drop a connection from every group it belongs to."""

        left: list[str] = []
        async with self._lock:
            for name, group in list(self._groups.items()):
                if connection_id in group.connections:
                    group.connections.discard(connection_id)
                    left.append(name)
                    self._drop_if_empty(name, group)
        return left

    async def groups_of(self, connection_id: str) -> set[str]:
        async with self._lock:
            return {name for name, group in self._groups.items() if connection_id in group.connections}

    async def group_names(self) -> set[str]:
        async with self._lock:
            return set(self._groups)

    async def clear(self) -> None:
        async with self._lock:
            self._groups.clear()

    def _drop_if_empty(self, group_name: str, group: _Group) -> None:
        if group.is_empty():
            self._groups.pop(group_name, None)


__all__ = ["GroupMembershipStore"]
