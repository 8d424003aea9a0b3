from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence

from aduib_naming.core.context import Scope
from aduib_naming.core.watcher import QueueWatcher
from aduib_naming.discover.entities import Instance, Registration
from aduib_naming.discover.watcher import Event, EventOp, EventWatcher
from aduib_naming.exceptions import AlreadyRegisteredError, ServiceNotFoundError
from aduib_naming.observability.logging import log_trace
from aduib_naming.utils.id_utils import IdUtils

__all__ = [
    "Agent",
    "LocalAgent",
    "Service",
]

logger = logging.getLogger(__name__)


class Service:
    """A set of instances offering the same functionality under one name.

    Args:
        name: Unique name of the service.
        instances: Instances matching the query that produced this service.
        watch: Factory creating a watcher over this service's events.
    """

    def __init__(
        self,
        name: str,
        instances: Sequence[Instance],
        watch: Callable[[Scope | None], EventWatcher],
    ) -> None:
        self._name = name
        self._instances = tuple(instances)
        self._watch = watch

    @property
    def name(self) -> str:
        return self._name

    @property
    def instances(self) -> list[Instance]:
        return list(self._instances)

    def watch(self, scope: Scope | None = None) -> EventWatcher:
        """Listen to updates of this service."""
        return self._watch(scope)

    def __repr__(self) -> str:
        return f"Service(name={self._name!r}, instances={len(self._instances)})"


class Agent(ABC):
    """Interacts with a service catalogue.

    An agent manages the services offered by the local node and answers
    queries about the services offered by other nodes.
    """

    @abstractmethod
    async def register(self, registration: Registration) -> str:
        """Adds a service instance to the catalogue and returns its ID."""

    @abstractmethod
    async def deregister(self, instance_id: str) -> None:
        """Removes an instance from the catalogue.

        Nothing happens if the instance does not exist.
        """

    @abstractmethod
    async def services(self, *tags: str) -> dict[str, Service]:
        """Returns all services having at least one instance with every tag."""

    @abstractmethod
    async def service(self, name: str, *tags: str) -> Service:
        """Returns the instances of a service carrying every tag.

        Raises:
            ServiceNotFoundError: No instance matches.
        """

    @abstractmethod
    def watch(self, name: str | None = None, tags: Sequence[str] = (), scope: Scope | None = None) -> EventWatcher:
        """Listens to catalogue events, optionally restricted to one service and tags."""

    @abstractmethod
    async def leave(self) -> None:
        """Deregisters every local instance and drops all subscriptions."""


class _Subscription:
    __slots__ = ("name", "tags", "watcher")

    def __init__(self, name: str | None, tags: tuple[str, ...]) -> None:
        self.name = name
        self.tags = tags
        self.watcher: QueueWatcher[Event] | None = None

    def matches(self, instance: Instance) -> bool:
        if self.name is not None and instance.name != self.name:
            return False
        return instance.has_tags(*self.tags)


class LocalAgent(Agent):
    """In-process service discovery agent.

    Used when no external discovery cluster is configured. Each subscriber
    owns an unbounded queue, so publishing an event never waits on a slow
    consumer while the catalogue lock is held.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._registry: dict[str, Instance] = {}
        self._subs: set[_Subscription] = set()

    async def register(self, registration: Registration) -> str:
        async with self._lock:
            instance_id = registration.id or IdUtils.generate_instance_id()
            if instance_id in self._registry:
                raise AlreadyRegisteredError(data={"id": instance_id})
            instance = Instance(
                local=True,
                id=instance_id,
                name=registration.name,
                host=registration.addr,
                port=registration.port,
                tags=registration.tags,
            )
            self._registry[instance_id] = instance
            self._publish(Event(EventOp.ADD, instance))
        log_trace(logger, "disco.register", "Registered service instance",
                  service_id=instance_id, service_name=instance.name, addr=instance.addr)
        return instance_id

    async def deregister(self, instance_id: str) -> None:
        async with self._lock:
            self._deregister(instance_id)

    async def services(self, *tags: str) -> dict[str, Service]:
        grouped: dict[str, list[Instance]] = {}
        for instance in self._registry.values():
            if instance.has_tags(*tags):
                grouped.setdefault(instance.name, []).append(instance)
        return {
            name: Service(name, instances, self._watch_factory(name, tags))
            for name, instances in grouped.items()
        }

    async def service(self, name: str, *tags: str) -> Service:
        services = await self.services(*tags)
        svc = services.get(name)
        if svc is None:
            raise ServiceNotFoundError(data={"name": name, "tags": list(tags)})
        return svc

    def watch(self, name: str | None = None, tags: Sequence[str] = (), scope: Scope | None = None) -> EventWatcher:
        sub_tags = tuple(tags)
        current = [
            Event(EventOp.ADD, instance)
            for instance in self._registry.values()
            if (name is None or instance.name == name) and instance.has_tags(*sub_tags)
        ]
        sub = _Subscription(name, sub_tags)
        sub.watcher = QueueWatcher(scope, initial=current, on_close=lambda: self._subs.discard(sub))
        if not sub.watcher.closed:
            self._subs.add(sub)
        return sub.watcher

    async def leave(self) -> None:
        async with self._lock:
            for instance_id in list(self._registry):
                self._deregister(instance_id)
            self._registry = {}
            subs, self._subs = self._subs, set()
        for sub in subs:
            sub.watcher.detach()

    def _watch_factory(self, name: str, tags: tuple[str, ...]) -> Callable[[Scope | None], EventWatcher]:
        def watch(scope: Scope | None = None) -> EventWatcher:
            return self.watch(name, tags, scope)

        return watch

    def _deregister(self, instance_id: str) -> None:
        instance = self._registry.pop(instance_id, None)
        if instance is None:
            return
        self._publish(Event(EventOp.DELETE, instance))
        log_trace(logger, "disco.deregister", "Deregistered service instance",
                  service_id=instance_id, service_name=instance.name)

    def _publish(self, event: Event) -> None:
        for sub in list(self._subs):
            if sub.matches(event.instance):
                sub.watcher.push(event)
