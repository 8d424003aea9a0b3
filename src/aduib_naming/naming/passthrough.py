from __future__ import annotations

from aduib_naming.core.context import Scope
from aduib_naming.core.watcher import QueueWatcher
from aduib_naming.naming.target import ParsedTarget
from aduib_naming.naming.update import AddressWatcher, Resolver, Update

__all__ = [
    "PassthroughResolver",
    "StaticWatcher",
    "build_passthrough",
]


class StaticWatcher(QueueWatcher[Update]):
    """Watcher over an address that never changes.

    ``next()`` returns the address the first time it is called and then blocks
    until the watcher is closed.
    """

    def __init__(self, addr: str, scope: Scope | None = None) -> None:
        super().__init__(scope, initial=[Update(addr)])


class PassthroughResolver(Resolver):
    """Defers name resolution to the transport by returning the target as is."""

    def __init__(self, scope: Scope | None = None) -> None:
        self._scope = scope

    async def resolve(self, target: str) -> AddressWatcher:
        return StaticWatcher(target, self._scope)


async def build_passthrough(scope: Scope, target: ParsedTarget) -> AddressWatcher:
    return await PassthroughResolver(scope).resolve(target.endpoint)
