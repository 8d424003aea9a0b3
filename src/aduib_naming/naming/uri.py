from __future__ import annotations

from typing import TYPE_CHECKING

from aduib_naming.core.context import Scope
from aduib_naming.naming.update import AddressWatcher, Resolver

if TYPE_CHECKING:
    from aduib_naming.naming.registry import ResolverRegistry

__all__ = ["URIResolver"]


class URIResolver(Resolver):
    """Uses the scheme of the target URI to select the actual resolver."""

    def __init__(self, registry: ResolverRegistry, scope: Scope | None = None) -> None:
        self._registry = registry
        self._scope = scope or Scope()

    async def resolve(self, target: str) -> AddressWatcher:
        return await self._registry.resolve(self._scope, target)
