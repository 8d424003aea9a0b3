from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from typing import Any, Generic, TypeVar

from aduib_naming.core.context import Scope
from aduib_naming.exceptions import ScopeCancelledError, WatcherClosedError

__all__ = [
    "QueueWatcher",
    "Watcher",
]

T = TypeVar("T")


class Watcher(ABC, Generic[T]):
    """Blocking iterator over incremental changes.

    ``next()`` blocks until at least one change is available. The first call
    returns the full current state. Once ``close()`` has been called, every
    ``next()`` raises :class:`WatcherClosedError`. A watcher supports exactly
    one consumer.
    """

    @abstractmethod
    async def next(self) -> list[T]:
        """Wait for the next batch of changes."""

    @abstractmethod
    async def close(self) -> None:
        """Close the watcher. Calling it more than once is allowed."""

    def __aiter__(self) -> Watcher[T]:
        return self

    async def __anext__(self) -> list[T]:
        try:
            return await self.next()
        except WatcherClosedError:
            raise StopAsyncIteration from None

    async def __aenter__(self) -> Watcher[T]:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, traceback: Any) -> None:
        await self.close()


class _Detached:
    pass


_DETACHED = _Detached()


class QueueWatcher(Watcher[T]):
    """Watcher draining an unbounded queue of changes.

    Producers call :meth:`push` without ever blocking. :meth:`detach` ends the
    stream from the producer side: the consumer still receives what was queued
    before it, then the watcher reports itself closed.

    Args:
        scope: Scope bounding the watcher; a child scope is created from it.
        initial: Changes available to the first ``next()``.
        on_close: Called once when the watcher is closed or its scope ends.
    """

    def __init__(
        self,
        scope: Scope | None = None,
        *,
        initial: Iterable[T] = (),
        on_close: Callable[[], Any] | None = None,
    ) -> None:
        self._scope = scope.child() if scope is not None else Scope()
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._on_close = on_close
        self._exhausted = False
        for item in initial:
            self._queue.put_nowait(item)
        self._scope.add_done_callback(self._release)

    @property
    def closed(self) -> bool:
        return self._exhausted or self._scope.cancelled

    def push(self, item: T) -> None:
        if self.closed:
            return
        self._queue.put_nowait(item)

    def detach(self) -> None:
        if self.closed:
            return
        self._queue.put_nowait(_DETACHED)
        self._release()

    async def next(self) -> list[T]:
        if self.closed:
            raise WatcherClosedError()
        try:
            item = await self._scope.guard(self._queue.get())
        except ScopeCancelledError:
            raise WatcherClosedError() from None

        batch: list[T] = []
        while True:
            if item is _DETACHED:
                self._exhausted = True
                break
            batch.append(item)
            try:
                item = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
        if not batch:
            raise WatcherClosedError()
        return batch

    async def close(self) -> None:
        self._scope.cancel()

    def _release(self) -> None:
        on_close, self._on_close = self._on_close, None
        if on_close is not None:
            on_close()
