"""Cancellable lifetime scopes.

A :class:`Scope` bounds the lifetime of long-running watches. Scopes form a
tree: cancelling a scope cancels all of its children, and a child never
outlives the deadline of its parent. Watchers create a child of the scope they
are given and cancel it on ``close()``, so both a deliberate close and an
external cancellation end a watch the same way.
"""

from __future__ import annotations

import asyncio
import time
import weakref
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from aduib_naming.exceptions import ScopeCancelledError

__all__ = [
    "Scope",
    "background",
]

T = TypeVar("T")


class Scope:
    """Cancellable execution scope with an optional deadline.

    Args:
        parent: Optional parent scope; the new scope ends when the parent ends.
        timeout: Optional lifetime in seconds, measured from construction.
    """

    def __init__(self, parent: Scope | None = None, *, timeout: float | None = None) -> None:
        self._parent = parent
        self._event = asyncio.Event()
        self._children: weakref.WeakSet[Scope] = weakref.WeakSet()
        self._callbacks: list[Callable[[], Any]] = []
        self._cancelled = False

        deadline = None if timeout is None else time.monotonic() + max(0.0, float(timeout))
        if parent is not None:
            parent_deadline = parent.deadline
            if parent_deadline is not None and (deadline is None or parent_deadline < deadline):
                deadline = parent_deadline
            parent._children.add(self)
            if parent.cancelled:
                self.cancel()
        self._deadline = deadline

    @property
    def parent(self) -> Scope | None:
        return self._parent

    @property
    def deadline(self) -> float | None:
        """Monotonic timestamp after which the scope is considered ended."""
        return self._deadline

    @property
    def cancelled(self) -> bool:
        if self._cancelled:
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self.cancel()
            return True
        if self._parent is not None and self._parent.cancelled:
            self.cancel()
            return True
        return False

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def cancel(self) -> None:
        """End the scope and all of its children. Calling it again is a no-op."""
        if self._cancelled:
            return
        self._cancelled = True
        self._event.set()
        for child in list(self._children):
            child.cancel()
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def add_done_callback(self, callback: Callable[[], Any]) -> None:
        """Run ``callback`` once the scope is cancelled (immediately if it already is)."""
        if self.cancelled:
            callback()
            return
        self._callbacks.append(callback)

    def child(self, timeout: float | None = None) -> Scope:
        return Scope(self, timeout=timeout)

    async def wait(self) -> None:
        """Block until the scope ends, either by cancellation or deadline."""
        if self.cancelled:
            return
        remaining = self.remaining()
        if remaining is None:
            await self._event.wait()
            return
        try:
            await asyncio.wait_for(self._event.wait(), remaining)
        except TimeoutError:
            self.cancel()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the scope ends first.

        Raises:
            ScopeCancelledError: The scope ended before the awaitable finished.
        """
        if self.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise ScopeCancelledError()

        work = asyncio.ensure_future(awaitable)
        ended = asyncio.ensure_future(self.wait())
        try:
            done, _ = await asyncio.wait({work, ended}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for fut in (work, ended):
                if not fut.done():
                    fut.cancel()
        if work in done:
            return work.result()
        raise ScopeCancelledError()

    async def sleep(self, delay: float) -> None:
        """Sleep for ``delay`` seconds, raising ScopeCancelledError if the scope ends first."""
        if delay <= 0:
            if self.cancelled:
                raise ScopeCancelledError()
            return
        await self.guard(asyncio.sleep(delay))

    async def __aenter__(self) -> Scope:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, traceback: Any) -> None:
        self.cancel()


def background() -> Scope:
    """Return a new root scope without deadline, ended only by an explicit cancel."""
    return Scope()
