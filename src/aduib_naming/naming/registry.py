from __future__ import annotations

import logging
import threading
from collections.abc import Awaitable, Callable

from aduib_naming.config.models import NamingConfig
from aduib_naming.core.context import Scope
from aduib_naming.discover.agent import Agent, LocalAgent
from aduib_naming.discover.catalog import HttpCatalog
from aduib_naming.exceptions import RegistryConfigurationError, ResolverNotFoundError
from aduib_naming.naming.disco import catalog_builder, disco_builder
from aduib_naming.naming.dns import dns_builder
from aduib_naming.naming.passthrough import build_passthrough
from aduib_naming.naming.target import ParsedTarget, parse_uri
from aduib_naming.naming.update import AddressWatcher
from aduib_naming.observability.logging import LogContext

__all__ = [
    "Builder",
    "Closer",
    "DEFAULT_SCHEME",
    "ResolverRegistry",
    "create_default_registry",
]

logger = logging.getLogger(__name__)

DEFAULT_SCHEME = "passthrough"

Builder = Callable[[Scope, ParsedTarget], Awaitable[AddressWatcher]]
Closer = Callable[[], Awaitable[None]]


class ResolverRegistry:
    """Maps URI schemes to the builders creating their watchers.

    A fully qualified name uses the syntax ``scheme://authority/endpoint``.
    Names without a scheme use the default scheme.
    """

    def __init__(self, default_scheme: str = DEFAULT_SCHEME) -> None:
        self._lock = threading.Lock()
        self._builders: dict[str, Builder] = {}
        self._default_scheme = default_scheme
        self._closers: list[Closer] = []

    @property
    def default_scheme(self) -> str:
        return self._default_scheme

    def set_default_scheme(self, scheme: str) -> None:
        """Define the scheme used when a name does not have one."""
        if not scheme:
            raise RegistryConfigurationError(message="naming: default scheme is empty")
        with self._lock:
            self._default_scheme = scheme.lower()

    def register(self, scheme: str, builder: Builder) -> None:
        """Make a builder available for ``scheme``.

        Registering a scheme twice or registering a missing builder is a
        programming error and raises RegistryConfigurationError.
        """
        if builder is None or not callable(builder):
            logger.critical("Registered resolver for scheme '%s' is nil", scheme)
            raise RegistryConfigurationError(message="naming: registered resolver is nil", data={"scheme": scheme})
        if not scheme:
            logger.critical("Registered resolver has no scheme")
            raise RegistryConfigurationError(message="naming: registered resolver has no scheme")
        scheme = scheme.lower()
        with self._lock:
            if scheme in self._builders:
                logger.critical("Duplicated resolver for scheme '%s'", scheme)
                raise RegistryConfigurationError(message="naming: duplicated resolver", data={"scheme": scheme})
            self._builders[scheme] = builder
        logger.debug("Registered resolver for scheme '%s'", scheme)

    def schemes(self) -> list[str]:
        """Return the sorted list of registered schemes."""
        with self._lock:
            return sorted(self._builders)

    async def resolve(self, scope: Scope, uri: str) -> AddressWatcher:
        """Build a watcher for ``uri``.

        Raises:
            InvalidTargetError: The URI is malformed.
            ResolverNotFoundError: No builder is registered for the scheme.
        """
        target = parse_uri(uri, self._default_scheme)
        with self._lock:
            builder = self._builders.get(target.scheme)
        if builder is None:
            raise ResolverNotFoundError(
                message=f"naming: resolver not found <{target.scheme}>",
                data={"scheme": target.scheme},
            )
        with LogContext(scheme=target.scheme, target=target.endpoint):
            logger.debug("Resolving %s", uri)
            return await builder(scope, target)

    def add_closer(self, closer: Closer) -> None:
        """Register a callback releasing a resource the builders share, e.g. an HTTP client."""
        with self._lock:
            self._closers.append(closer)

    async def aclose(self) -> None:
        """Run the registered closers, most recent first. Calling it again is a no-op."""
        with self._lock:
            closers, self._closers = self._closers, []
        for closer in reversed(closers):
            await closer()

    async def __aenter__(self) -> ResolverRegistry:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


def create_default_registry(
    agent: Agent | None = None,
    config: NamingConfig | None = None,
    catalog: HttpCatalog | None = None,
) -> ResolverRegistry:
    """Create a registry with the built-in ``dns``, ``disco`` and ``passthrough`` resolvers.

    A ``catalog`` resolver is added when the configuration names a catalogue URL
    or a catalogue is given. The registry closes the catalogue on :meth:`ResolverRegistry.aclose`.

    Args:
        agent: Discovery agent backing the ``disco`` scheme; a new LocalAgent when omitted.
        config: Naming configuration; defaults apply when omitted.
        catalog: Catalogue backing the ``catalog`` scheme; built from ``config.catalog`` when omitted.
    """
    if agent is None:
        agent = LocalAgent()
    config = config or NamingConfig()
    registry = ResolverRegistry(default_scheme=config.default_scheme)
    registry.register("dns", dns_builder(config.dns))
    registry.register("disco", disco_builder(agent, config.disco.tags))
    registry.register("passthrough", build_passthrough)
    if catalog is None and config.catalog.url:
        catalog = HttpCatalog(config.catalog.url, timeout=config.catalog.timeout_seconds)
    if catalog is not None:
        registry.register(
            "catalog",
            catalog_builder(catalog, config.catalog.interval_seconds, config.catalog.tags),
        )
        registry.add_closer(catalog.aclose)
    return registry
