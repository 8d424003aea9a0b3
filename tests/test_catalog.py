from __future__ import annotations

import httpx
import pytest

from aduib_naming.config import CatalogConfig, NamingConfig
from aduib_naming.core import Scope
from aduib_naming.discover import EventOp, HttpCatalog
from aduib_naming.exceptions import ServiceNotFoundError
from aduib_naming.naming import Operation, Update, catalog_builder, create_default_registry, parse_uri

ENTRIES = [
    {
        "Node": {"Node": "node-1", "Address": "10.0.0.9"},
        "Service": {"ID": "payments-1", "Service": "payments", "Address": "", "Port": 8080, "Tags": ["eu"]},
    },
    {
        "Node": {"Node": "node-2", "Address": "10.0.0.10"},
        "Service": {"ID": "payments-2", "Service": "payments", "Address": "10.1.0.2", "Port": 9090, "Tags": ["eu", "v2"]},
    },
    {
        "Node": {"Node": "node-3"},
        "Service": {"ID": "payments-3", "Service": "payments", "Tags": ["eu"]},
    },
]


def _catalog(entries: list[dict], requests: list[httpx.Request] | None = None, status: int = 200) -> HttpCatalog:
    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return httpx.Response(status, json=entries)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpCatalog("http://catalog.local:8500/", client=client)


@pytest.mark.asyncio
async def test_instances_query_health_endpoint_with_tags():
    requests: list[httpx.Request] = []
    catalog = _catalog(ENTRIES, requests)

    instances = await catalog.instances("payments", "eu")

    assert [(inst.id, inst.addr, inst.local) for inst in instances] == [
        ("payments-1", "10.0.0.9:8080", False),
        ("payments-2", "10.1.0.2:9090", False),
    ]
    request = requests[0]
    assert request.url.path == "/v1/health/service/payments"
    assert request.url.params["passing"] == "true"
    assert request.url.params.get_list("tag") == ["eu"]
    await catalog.aclose()


@pytest.mark.asyncio
async def test_instances_without_every_tag_are_dropped():
    catalog = _catalog(ENTRIES)

    instances = await catalog.instances("payments", "eu", "v2")

    assert [inst.id for inst in instances] == ["payments-2"]


@pytest.mark.asyncio
async def test_service_requires_at_least_one_instance():
    catalog = _catalog([])

    with pytest.raises(ServiceNotFoundError):
        await catalog.service("payments")


@pytest.mark.asyncio
async def test_http_errors_propagate():
    catalog = _catalog([], status=500)

    with pytest.raises(httpx.HTTPStatusError):
        await catalog.instances("payments")


@pytest.mark.asyncio
async def test_watch_reports_catalogue_snapshot_as_events():
    catalog = _catalog(ENTRIES)

    async with catalog.watch("payments", ("v2",), interval=0.01) as watcher:
        events = await watcher.next()

    assert [(evt.op, evt.instance.id) for evt in events] == [(EventOp.ADD, "payments-2")]


@pytest.mark.asyncio
async def test_catalog_builder_yields_address_updates():
    catalog = _catalog(ENTRIES)
    build = catalog_builder(catalog, interval=0.01, tags=("eu",))

    watcher = await build(Scope(), parse_uri("catalog://payments?tag=v2", "passthrough"))

    assert await watcher.next() == [Update("10.1.0.2:9090", Operation.ADD)]
    await watcher.close()


def test_default_registry_adds_catalog_scheme_when_configured():
    config = NamingConfig(catalog=CatalogConfig(url="http://catalog.local:8500"))

    assert "catalog" in create_default_registry(config=config).schemes()
    assert "catalog" not in create_default_registry().schemes()


@pytest.mark.asyncio
async def test_entries_with_invalid_port_are_skipped(caplog):
    entries = [
        {"Node": {"Address": "10.0.0.1"}, "Service": {"ID": "ok", "Service": "payments", "Port": 80}},
        {"Node": {"Address": "10.0.0.2"}, "Service": {"ID": "too-big", "Service": "payments", "Port": 70000}},
        {"Node": {"Address": "10.0.0.3"}, "Service": {"ID": "garbage", "Service": "payments", "Port": "http"}},
    ]
    catalog = _catalog(entries)

    with caplog.at_level("WARNING", logger="aduib_naming.discover.catalog"):
        instances = await catalog.instances("payments")

    assert [(inst.id, inst.addr) for inst in instances] == [("ok", "10.0.0.1:80")]
    assert [record.tag for record in caplog.records] == ["disco.catalog.skip", "disco.catalog.skip"]
    await catalog.aclose()


@pytest.mark.asyncio
async def test_registry_closes_the_catalogue_client():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200, json=ENTRIES)))
    catalog = HttpCatalog("http://catalog.local:8500", client=client)

    async with create_default_registry(catalog=catalog) as registry:
        assert "catalog" in registry.schemes()
        watcher = await registry.resolve(Scope(), "catalog://payments?tag=v2")
        assert await watcher.next() == [Update("10.1.0.2:9090", Operation.ADD)]
        await watcher.close()

    assert client.is_closed
    await registry.aclose()
