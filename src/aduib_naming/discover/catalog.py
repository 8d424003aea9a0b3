"""Remote service catalogue queried over HTTP.

The catalogue speaks the Consul health API
(``GET /v1/health/service/<name>?passing=true&tag=<tag>``). It only returns
full snapshots, so watchers poll it through a :class:`SnapshotWatcher`.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx
from pydantic import ValidationError

from aduib_naming.core.context import Scope
from aduib_naming.discover.entities import Instance
from aduib_naming.discover.snapshot import SnapshotWatcher
from aduib_naming.discover.watcher import EventWatcher
from aduib_naming.exceptions import ServiceNotFoundError
from aduib_naming.observability.logging import log_warning

__all__ = ["HttpCatalog"]

logger = logging.getLogger(__name__)


class HttpCatalog:
    """Reads service instances from an HTTP catalogue.

    Args:
        base_url: Catalogue address, e.g. ``http://127.0.0.1:8500``.
        timeout: Request timeout in seconds.
        client: Optional preconfigured client; one is created on first use otherwise.
    """

    def __init__(self, base_url: str, *, timeout: float = 5.0, client: httpx.AsyncClient | None = None) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def instances(self, name: str, *tags: str) -> list[Instance]:
        """Return the passing instances of ``name`` carrying every tag.

        Raises:
            httpx.HTTPError: The catalogue cannot be reached or answered an error.
        """
        params: list[tuple[str, str]] = [("passing", "true")]
        params += [("tag", tag) for tag in tags]
        response = await self._get_client().get(f"{self._base_url}/v1/health/service/{name}", params=params)
        response.raise_for_status()
        entries = response.json() or []
        instances = []
        for entry in entries:
            instance = _instance_from_entry(name, entry)
            if instance is not None and instance.has_tags(*tags):
                instances.append(instance)
        return instances

    async def service(self, name: str, *tags: str) -> list[Instance]:
        """Like :meth:`instances`, but the service must have at least one instance.

        Raises:
            ServiceNotFoundError: The catalogue has no matching instance.
        """
        instances = await self.instances(name, *tags)
        if not instances:
            raise ServiceNotFoundError(data={"name": name, "tags": list(tags)})
        return instances

    def watch(self, name: str, tags: Sequence[str] = (), interval: float = 30.0, scope: Scope | None = None) -> EventWatcher:
        """Poll the instances of ``name`` every ``interval`` seconds."""
        tags = tuple(tags)

        async def fetch() -> list[Instance]:
            return await self.instances(name, *tags)

        return SnapshotWatcher(fetch, interval, scope)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def _instance_from_entry(name: str, entry: Any) -> Instance | None:
    if not isinstance(entry, dict):
        return None
    service = entry.get("Service") or {}
    node = entry.get("Node") or {}
    host = service.get("Address") or node.get("Address")
    port = service.get("Port")
    if not host or port is None:
        log_warning(logger, "disco.catalog.skip", "Skipping catalogue entry without address", service=name)
        return None
    try:
        return Instance(
            local=False,
            id=str(service.get("ID") or f"{name}:{host}:{port}"),
            name=str(service.get("Service") or name),
            host=str(host),
            port=int(port),
            tags=tuple(service.get("Tags") or ()),
        )
    except (TypeError, ValueError, ValidationError) as exc:
        log_warning(logger, "disco.catalog.skip", "Skipping malformed catalogue entry", service=name,
                    port=port, error=str(exc))
        return None
