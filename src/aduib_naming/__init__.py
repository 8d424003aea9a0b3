"""Public API for aduib_naming.

This module re-exports the stable, supported surface area of the library.
Import from here when possible.
"""

from aduib_naming.core import QueueWatcher, Scope, Watcher, background
from aduib_naming.discover import (
    Agent,
    Diff,
    Event,
    EventOp,
    HttpCatalog,
    Instance,
    LocalAgent,
    Registration,
    Service,
    SnapshotWatcher,
    apply_diff,
)
from aduib_naming.exceptions import (
    AlreadyRegisteredError,
    ConfigError,
    InvalidTargetError,
    NamingException,
    RegistryConfigurationError,
    ResolverNotFoundError,
    ScopeCancelledError,
    ServiceNotFoundError,
    UnsupportedOperationError,
    WatcherClosedError,
)
from aduib_naming.naming import (
    DNSResolver,
    DiscoResolver,
    Operation,
    PassthroughResolver,
    Resolver,
    ResolverRegistry,
    URIResolver,
    Update,
    create_default_registry,
)

__all__ = [
    # lifetime
    "Scope",
    "background",
    "Watcher",
    "QueueWatcher",
    # discovery
    "Agent",
    "LocalAgent",
    "Service",
    "Instance",
    "Registration",
    "Event",
    "EventOp",
    "Diff",
    "apply_diff",
    "SnapshotWatcher",
    "HttpCatalog",
    # naming
    "Resolver",
    "ResolverRegistry",
    "create_default_registry",
    "DNSResolver",
    "DiscoResolver",
    "PassthroughResolver",
    "URIResolver",
    "Operation",
    "Update",
    # errors
    "NamingException",
    "AlreadyRegisteredError",
    "ConfigError",
    "InvalidTargetError",
    "RegistryConfigurationError",
    "ResolverNotFoundError",
    "ScopeCancelledError",
    "ServiceNotFoundError",
    "UnsupportedOperationError",
    "WatcherClosedError",
]
