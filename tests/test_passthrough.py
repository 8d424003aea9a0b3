from __future__ import annotations

import asyncio

import pytest

from aduib_naming.core import Scope
from aduib_naming.exceptions import InvalidTargetError, WatcherClosedError
from aduib_naming.naming import PassthroughResolver, Update, build_passthrough, parse_uri


def test_parse_uri_without_scheme_uses_default():
    target = parse_uri("10.0.0.1:8080", "passthrough")

    assert target.scheme == "passthrough"
    assert target.authority == "10.0.0.1:8080"
    assert target.endpoint == "10.0.0.1:8080"
    assert str(target) == "passthrough://10.0.0.1:8080"


def test_parse_uri_endpoint_prefers_path():
    target = parse_uri("DNS://8.8.8.8/payments.internal:8443?freq=60&tag=a&tag=&tag=b", "passthrough")

    assert target.scheme == "dns"
    assert target.authority == "8.8.8.8"
    assert target.endpoint == "payments.internal:8443"
    assert target.query_value("freq") == "60"
    assert target.query_value("missing", "x") == "x"
    assert target.query_values("tag") == ["a", "b"]


def test_parse_uri_rejects_malformed_uri():
    with pytest.raises(InvalidTargetError):
        parse_uri("dns://[::1/payments", "passthrough")


@pytest.mark.asyncio
async def test_passthrough_returns_target_once_then_blocks():
    watcher = await PassthroughResolver(Scope()).resolve("payments.internal:443")

    assert await watcher.next() == [Update("payments.internal:443")]
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(watcher.next(), 0.05)

    await watcher.close()
    with pytest.raises(WatcherClosedError):
        await watcher.next()


@pytest.mark.asyncio
async def test_bare_and_prefixed_names_resolve_to_the_same_address():
    bare = await build_passthrough(Scope(), parse_uri("payments", "passthrough"))
    prefixed = await build_passthrough(Scope(), parse_uri("passthrough://payments", "passthrough"))
    with_path = await build_passthrough(Scope(), parse_uri("passthrough:///payments", "passthrough"))

    assert await bare.next() == await prefixed.next() == await with_path.next() == [Update("payments")]
