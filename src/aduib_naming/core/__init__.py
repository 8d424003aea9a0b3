from aduib_naming.core.context import Scope, background
from aduib_naming.core.watcher import QueueWatcher, Watcher

__all__ = [
    "QueueWatcher",
    "Scope",
    "Watcher",
    "background",
]
