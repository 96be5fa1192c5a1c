"""Addressing targets understood by the message router."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class AllClients:
    def describe(self) -> str:
        return "all"


@dataclass(frozen=True)
class GroupTarget:
    name: str

    def describe(self) -> str:
        return f"group:{self.name}"


@dataclass(frozen=True)
class UserTarget:
    user_id: str

    def describe(self) -> str:
        return f"user:{self.user_id}"


@dataclass(frozen=True)
class ConnectionTarget:
    connection_id: str

    def describe(self) -> str:
        return f"connection:{self.connection_id}"


Selector = Union[AllClients, GroupTarget, UserTarget, ConnectionTarget]

ALL = AllClients()


__all__ = ["ALL", "AllClients", "ConnectionTarget", "GroupTarget", "Selector", "UserTarget"]
