from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import IntEnum

from aduib_naming.core.watcher import Watcher
from aduib_naming.discover.entities import Instance

__all__ = [
    "Diff",
    "Event",
    "EventOp",
    "EventWatcher",
    "apply_diff",
]


class EventOp(IntEnum):
    """Operations carried by a discovery event."""

    ADD = 0
    UPDATE = 1
    DELETE = 2


@dataclass(frozen=True, slots=True)
class Event:
    """An add, update or delete of a single instance."""

    op: EventOp
    instance: Instance


EventWatcher = Watcher[Event]


def apply_diff(
    previous: Mapping[str, Instance],
    state: Iterable[Instance],
) -> tuple[list[Event], dict[str, Instance]]:
    """Compute the events needed to go from ``previous`` to ``state``.

    Instances whose ID is new yield ``ADD``. Instances already known yield
    ``UPDATE`` without comparing their fields, so consumers decide whether the
    instance is stale. IDs that disappeared yield ``DELETE``.

    Returns:
        The events and the snapshot describing ``state``, keyed by instance ID.
    """
    events: list[Event] = []
    snapshot: dict[str, Instance] = {}

    for inst in state:
        if inst.id in previous:
            events.append(Event(EventOp.UPDATE, inst))
        else:
            events.append(Event(EventOp.ADD, inst))
        snapshot[inst.id] = inst

    for inst_id, inst in previous.items():
        if inst_id not in snapshot:
            events.append(Event(EventOp.DELETE, inst))

    return events, snapshot


class Diff:
    """Stores a snapshot of instances and generates the events between snapshots.

    This lets adapters for sources without incremental updates expose an
    event stream.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot: dict[str, Instance] = {}

    def apply(self, state: Iterable[Instance]) -> list[Event]:
        """Return all events needed to go from the stored state to ``state``."""
        state = list(state)
        with self._lock:
            events, self._snapshot = apply_diff(self._snapshot, state)
        return events

    def snapshot(self) -> dict[str, Instance]:
        with self._lock:
            return dict(self._snapshot)
