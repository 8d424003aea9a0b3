from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable

from aduib_naming.core.context import Scope
from aduib_naming.core.watcher import Watcher
from aduib_naming.discover.entities import Instance
from aduib_naming.discover.watcher import Diff, Event
from aduib_naming.exceptions import ScopeCancelledError, WatcherClosedError
from aduib_naming.observability.logging import log_warning

__all__ = ["SnapshotWatcher"]

logger = logging.getLogger(__name__)

SnapshotFetcher = Callable[[], Iterable[Instance] | Awaitable[Iterable[Instance]]]


class SnapshotWatcher(Watcher[Event]):
    """Turns a source that only returns full snapshots into an event stream.

    The source is polled every ``interval`` seconds, the first time as soon as
    ``next()`` is called. Empty deltas are not reported; known instances come
    back as ``UPDATE`` on every poll and consumers drop the unchanged ones. A failing
    poll is logged and retried at the next interval.

    Args:
        fetch: Returns the current instances; may be a coroutine function.
        interval: Seconds between two polls.
        scope: Scope bounding the watcher.
    """

    def __init__(self, fetch: SnapshotFetcher, interval: float, scope: Scope | None = None) -> None:
        self._fetch = fetch
        self._interval = interval
        self._scope = scope.child() if scope is not None else Scope()
        self._diff = Diff()
        self._delay = 0.0

    async def next(self) -> list[Event]:
        while True:
            try:
                await self._scope.sleep(self._delay)
                self._delay = self._interval
                state = await self._scope.guard(self._poll())
            except ScopeCancelledError:
                raise WatcherClosedError() from None
            if state is None:
                continue
            events = self._diff.apply(state)
            if events:
                return events

    async def close(self) -> None:
        self._scope.cancel()

    async def _poll(self) -> list[Instance] | None:
        try:
            result = self._fetch()
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            log_warning(logger, "disco.snapshot.fail", "Failed to fetch service snapshot", error=repr(exc))
            return None
        return list(result or [])
