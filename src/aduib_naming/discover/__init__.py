"""In-process service discovery.

This module provides:
- Service registration and lookup through an :class:`Agent`
- Per-subscriber event streams over catalogue changes
- A diff engine turning full snapshots into incremental events

Example:
    from aduib_naming.discover import LocalAgent, Registration

    agent = LocalAgent()
    await agent.register(Registration(name="payments", addr="10.0.0.1", port=8080, tags=("eu",)))

    svc = await agent.service("payments", "eu")
    async with svc.watch() as watcher:
        events = await watcher.next()
"""

from __future__ import annotations

from aduib_naming.discover.agent import Agent, LocalAgent, Service
from aduib_naming.discover.catalog import HttpCatalog
from aduib_naming.discover.entities import Instance, Registration
from aduib_naming.discover.snapshot import SnapshotWatcher
from aduib_naming.discover.watcher import Diff, Event, EventOp, EventWatcher, apply_diff

__all__ = [
    "Agent",
    "Diff",
    "Event",
    "EventOp",
    "EventWatcher",
    "HttpCatalog",
    "Instance",
    "LocalAgent",
    "Registration",
    "Service",
    "SnapshotWatcher",
    "apply_diff",
]
