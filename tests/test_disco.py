from __future__ import annotations

import pytest

from aduib_naming.core import Scope, Watcher
from aduib_naming.discover import Event, EventOp, Instance, LocalAgent, Registration
from aduib_naming.exceptions import ServiceNotFoundError, WatcherClosedError
from aduib_naming.naming import DiscoResolver, DiscoWatcher, Operation, Update, disco_builder, parse_uri, translate_events


def _instance(instance_id: str, host: str = "10.0.0.1", port: int = 8080) -> Instance:
    return Instance(id=instance_id, name="payments", host=host, port=port)


class ScriptedWatcher(Watcher[Event]):
    def __init__(self, batches: list[list[Event]]) -> None:
        self._batches = list(batches)
        self.closed = False

    async def next(self) -> list[Event]:
        if self.closed or not self._batches:
            raise WatcherClosedError()
        return self._batches.pop(0)

    async def close(self) -> None:
        self.closed = True


def test_translate_add_and_delete():
    cache: dict[str, Instance] = {}
    a = _instance("a")

    assert translate_events([Event(EventOp.ADD, a)], cache) == [Update("10.0.0.1:8080")]
    assert cache == {"a": a}
    assert translate_events([Event(EventOp.DELETE, a)], cache) == [Update("10.0.0.1:8080", Operation.DELETE)]
    assert cache == {}


def test_translate_update_depends_on_cached_address():
    cache: dict[str, Instance] = {}
    a = _instance("a")

    # Unknown instance: the update is an addition.
    assert translate_events([Event(EventOp.UPDATE, a)], cache) == [Update("10.0.0.1:8080")]
    # Same address: nothing to report.
    assert translate_events([Event(EventOp.UPDATE, a)], cache) == []
    # Moved instance: old address goes, new address comes.
    moved = _instance("a", host="10.0.0.2")
    assert translate_events([Event(EventOp.UPDATE, moved)], cache) == [
        Update("10.0.0.1:8080", Operation.DELETE),
        Update("10.0.0.2:8080"),
    ]


def test_translate_delete_uses_last_known_address():
    cache = {"a": _instance("a", host="10.0.0.2")}

    updates = translate_events([Event(EventOp.DELETE, _instance("a", host="10.0.0.9"))], cache)

    assert updates == [Update("10.0.0.2:8080", Operation.DELETE)]


@pytest.mark.asyncio
async def test_disco_watcher_skips_batches_without_address_changes():
    a = _instance("a")
    b = _instance("b", host="10.0.0.3")
    events = ScriptedWatcher([
        [Event(EventOp.ADD, a)],
        [Event(EventOp.UPDATE, a)],
        [Event(EventOp.ADD, b)],
    ])
    watcher = DiscoWatcher(events)

    assert await watcher.next() == [Update("10.0.0.1:8080")]
    assert await watcher.next() == [Update("10.0.0.3:8080")]

    await watcher.close()
    assert events.closed
    with pytest.raises(WatcherClosedError):
        await watcher.next()


@pytest.mark.asyncio
async def test_resolver_follows_agent_registrations(agent: LocalAgent):
    await agent.register(Registration(id="p1", name="payments", addr="10.0.0.1", port=8080, tags=("eu",)))
    await agent.register(Registration(id="p2", name="payments", addr="10.0.0.2", port=8080, tags=("us",)))
    resolver = DiscoResolver(agent, Scope(), tags=("eu",))

    watcher = await resolver.resolve("payments")
    assert await watcher.next() == [Update("10.0.0.1:8080")]

    await agent.register(Registration(id="p3", name="payments", addr="10.0.0.3", port=8080, tags=("eu",)))
    await agent.deregister("p1")
    assert await watcher.next() == [Update("10.0.0.3:8080"), Update("10.0.0.1:8080", Operation.DELETE)]
    await watcher.close()


@pytest.mark.asyncio
async def test_resolver_fails_for_unknown_service(agent: LocalAgent):
    with pytest.raises(ServiceNotFoundError):
        await DiscoResolver(agent).resolve("payments")


@pytest.mark.asyncio
async def test_builder_combines_configured_and_uri_tags(agent: LocalAgent):
    await agent.register(Registration(id="p1", name="payments", addr="10.0.0.1", port=80, tags=("eu", "v2")))
    await agent.register(Registration(id="p2", name="payments", addr="10.0.0.2", port=80, tags=("eu",)))
    build = disco_builder(agent, tags=("eu",))

    watcher = await build(Scope(), parse_uri("disco://payments?tag=v2", "passthrough"))

    assert await watcher.next() == [Update("10.0.0.1:80")]
    with pytest.raises(ServiceNotFoundError):
        await build(Scope(), parse_uri("disco://payments?tag=us", "passthrough"))
