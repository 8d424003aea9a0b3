"""Name resolution.

Resolvers turn a name into a watcher yielding address updates. The
:class:`ResolverRegistry` selects the resolver from the scheme of the name:

- ``dns://host:port?freq=60`` polls SRV and A/AAAA records;
- ``disco://service?tag=eu`` follows a discovery agent;
- ``passthrough://host:port`` returns the name as is.

Example:
    registry = create_default_registry(agent)
    async with await registry.resolve(scope, "dns:///payments.internal:8443") as watcher:
        async for updates in watcher:
            ...
"""

from __future__ import annotations

from aduib_naming.naming.disco import DiscoResolver, DiscoWatcher, catalog_builder, disco_builder, translate_events
from aduib_naming.naming.dns import (
    DEFAULT_FREQ,
    DEFAULT_PORT,
    DEFAULT_SRV,
    AddressDelta,
    DNSResolver,
    DNSWatcher,
    build_dns,
    compile_update,
    dns_builder,
    parse_target,
)
from aduib_naming.naming.dns_lookup import DnsLookupError, SrvRecord, SystemLookup, lookup_host
from aduib_naming.naming.passthrough import PassthroughResolver, StaticWatcher, build_passthrough
from aduib_naming.naming.registry import DEFAULT_SCHEME, Builder, Closer, ResolverRegistry, create_default_registry
from aduib_naming.naming.target import ParsedTarget, parse_uri
from aduib_naming.naming.update import AddressWatcher, Operation, Resolver, Update
from aduib_naming.naming.uri import URIResolver

__all__ = [
    "DEFAULT_FREQ",
    "DEFAULT_PORT",
    "DEFAULT_SCHEME",
    "DEFAULT_SRV",
    "AddressDelta",
    "AddressWatcher",
    "Builder",
    "Closer",
    "DNSResolver",
    "DNSWatcher",
    "DiscoResolver",
    "DiscoWatcher",
    "DnsLookupError",
    "Operation",
    "ParsedTarget",
    "PassthroughResolver",
    "Resolver",
    "ResolverRegistry",
    "SrvRecord",
    "StaticWatcher",
    "SystemLookup",
    "URIResolver",
    "Update",
    "build_dns",
    "build_passthrough",
    "catalog_builder",
    "compile_update",
    "create_default_registry",
    "disco_builder",
    "dns_builder",
    "lookup_host",
    "parse_target",
    "parse_uri",
    "translate_events",
]
