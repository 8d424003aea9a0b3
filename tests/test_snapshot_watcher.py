from __future__ import annotations

import asyncio
import logging

import pytest

from aduib_naming.discover import EventOp, Instance, SnapshotWatcher
from aduib_naming.exceptions import WatcherClosedError


def _instance(instance_id: str) -> Instance:
    return Instance(id=instance_id, name="payments", host="10.0.0.1", port=8080)


@pytest.mark.asyncio
async def test_polls_and_reports_changes():
    state = [_instance("a")]
    watcher = SnapshotWatcher(lambda: list(state), interval=0.01)

    first = await watcher.next()
    assert [(evt.op, evt.instance.id) for evt in first] == [(EventOp.ADD, "a")]

    state[:] = [_instance("b")]
    second = await watcher.next()
    assert [(evt.op, evt.instance.id) for evt in second] == [(EventOp.ADD, "b"), (EventOp.DELETE, "a")]
    await watcher.close()


@pytest.mark.asyncio
async def test_accepts_coroutine_fetchers_and_skips_empty_polls():
    calls = 0

    async def fetch() -> list[Instance]:
        nonlocal calls
        calls += 1
        return [] if calls < 3 else [_instance("a")]

    watcher = SnapshotWatcher(fetch, interval=0.01)

    events = await asyncio.wait_for(watcher.next(), 1)
    assert [evt.instance.id for evt in events] == ["a"]
    assert calls == 3

    again = await asyncio.wait_for(watcher.next(), 1)
    assert [(evt.op, evt.instance.id) for evt in again] == [(EventOp.UPDATE, "a")]
    await watcher.close()


@pytest.mark.asyncio
async def test_failed_poll_is_logged_and_retried(caplog: pytest.LogCaptureFixture):
    calls = 0

    def fetch() -> list[Instance]:
        nonlocal calls
        calls += 1
        if calls == 1:
            raise RuntimeError("catalogue unavailable")
        return [_instance("a")]

    watcher = SnapshotWatcher(fetch, interval=0.01)
    with caplog.at_level(logging.WARNING, logger="aduib_naming.discover.snapshot"):
        events = await asyncio.wait_for(watcher.next(), 1)

    assert [evt.op for evt in events] == [EventOp.ADD]
    assert any(getattr(record, "tag", None) == "disco.snapshot.fail" for record in caplog.records)


@pytest.mark.asyncio
async def test_close_interrupts_waiting_poll():
    watcher = SnapshotWatcher(lambda: [_instance("a")], interval=60)
    await watcher.next()
    pending = asyncio.create_task(watcher.next())
    await asyncio.sleep(0.01)

    await watcher.close()

    with pytest.raises(WatcherClosedError):
        await pending
