from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence

from aduib_naming.core.context import Scope
from aduib_naming.core.watcher import Watcher
from aduib_naming.discover.agent import Agent
from aduib_naming.discover.catalog import HttpCatalog
from aduib_naming.discover.entities import Instance
from aduib_naming.discover.watcher import Event, EventOp, EventWatcher
from aduib_naming.naming.target import ParsedTarget
from aduib_naming.naming.update import AddressWatcher, Operation, Resolver, Update

__all__ = [
    "DiscoResolver",
    "DiscoWatcher",
    "catalog_builder",
    "disco_builder",
    "translate_events",
]


def translate_events(events: Sequence[Event], instances: dict[str, Instance]) -> list[Update]:
    """Translate discovery events into address updates.

    ``instances`` caches the last known instance per ID and is updated in place.
    An update that keeps the address produces nothing. An update that moves
    the instance produces the deletion of the old address followed by the
    addition of the new one.
    """
    updates: list[Update] = []
    for evt in events:
        inst = evt.instance
        if evt.op == EventOp.ADD:
            instances[inst.id] = inst
            updates.append(Update(inst.addr))
        elif evt.op == EventOp.UPDATE:
            cached = instances.get(inst.id)
            instances[inst.id] = inst
            if cached is None:
                updates.append(Update(inst.addr))
            elif cached.addr != inst.addr:
                updates.append(Update(cached.addr, Operation.DELETE))
                updates.append(Update(inst.addr))
        elif evt.op == EventOp.DELETE:
            cached = instances.pop(inst.id, None)
            addr = cached.addr if cached is not None else inst.addr
            updates.append(Update(addr, Operation.DELETE))
    return updates


class DiscoWatcher(Watcher[Update]):
    """Adapts a discovery event watcher to address updates.

    Batches whose events all translate to nothing are skipped, so ``next()``
    only returns when at least one address changed.
    """

    def __init__(self, watcher: EventWatcher) -> None:
        self._watcher = watcher
        self._instances: dict[str, Instance] | None = None

    async def next(self) -> list[Update]:
        if self._instances is None:
            self._instances = {}
        while True:
            events = await self._watcher.next()
            updates = translate_events(events, self._instances)
            if updates:
                return updates

    async def close(self) -> None:
        await self._watcher.close()


class DiscoResolver(Resolver):
    """Resolves service names through a discovery agent.

    Args:
        agent: Agent queried for the service.
        scope: Scope bounding the created watchers.
        tags: Tags every resolved instance must carry.
    """

    def __init__(self, agent: Agent, scope: Scope | None = None, tags: Sequence[str] = ()) -> None:
        self._agent = agent
        self._scope = scope
        self._tags = tuple(tags)

    async def resolve(self, target: str) -> AddressWatcher:
        svc = await self._agent.service(target, *self._tags)
        return DiscoWatcher(svc.watch(self._scope))


def disco_builder(
    agent: Agent,
    tags: Sequence[str] = (),
) -> Callable[[Scope, ParsedTarget], Awaitable[AddressWatcher]]:
    """Return a registry builder resolving ``disco://<service>?tag=<tag>`` names on ``agent``."""
    default_tags = tuple(tags)

    async def build(scope: Scope, target: ParsedTarget) -> AddressWatcher:
        uri_tags = target.query_values("tag")
        resolver = DiscoResolver(agent, scope, (*default_tags, *uri_tags))
        return await resolver.resolve(target.authority or target.endpoint)

    return build


def catalog_builder(
    catalog: HttpCatalog,
    interval: float,
    tags: Sequence[str] = (),
) -> Callable[[Scope, ParsedTarget], Awaitable[AddressWatcher]]:
    """Return a registry builder following ``catalog://<service>?tag=<tag>`` names on a remote catalogue.

    Unlike the agent, the catalogue is polled, so a service without instances
    yet can still be watched.
    """
    default_tags = tuple(tags)

    async def build(scope: Scope, target: ParsedTarget) -> AddressWatcher:
        name = target.authority or target.endpoint
        watch_tags = (*default_tags, *target.query_values("tag"))
        return DiscoWatcher(catalog.watch(name, watch_tags, interval, scope))

    return build
