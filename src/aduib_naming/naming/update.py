from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from aduib_naming.core.watcher import Watcher

__all__ = [
    "AddressWatcher",
    "Operation",
    "Resolver",
    "Update",
]


class Operation(IntEnum):
    """Operations carried by an address update."""

    ADD = 0
    DELETE = 1


@dataclass(frozen=True, slots=True)
class Update:
    """A name resolution change over one ``host:port`` address.

    ``op`` defaults to ``ADD`` so newly observed addresses need no explicit tag.
    """

    addr: str
    op: Operation = Operation.ADD
    metadata: Mapping[str, Any] | None = None


AddressWatcher = Watcher[Update]


class Resolver(ABC):
    """Creates watchers for a target."""

    @abstractmethod
    async def resolve(self, target: str) -> AddressWatcher:
        """Create a watcher that follows the name resolution of ``target``."""
