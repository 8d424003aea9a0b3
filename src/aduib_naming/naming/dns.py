"""DNS name resolution.

Based on the gRPC DNS naming resolver: a watcher polls the DNS server for the
SRV records of the target and falls back to its A/AAAA records, then reports
the addresses that appeared or vanished since the previous poll.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, replace

from aduib_naming.config.models import DnsConfig
from aduib_naming.core.context import Scope
from aduib_naming.core.watcher import Watcher
from aduib_naming.exceptions import InvalidTargetError, ScopeCancelledError, WatcherClosedError
from aduib_naming.naming.dns_lookup import SrvRecord, SystemLookup
from aduib_naming.naming.passthrough import StaticWatcher
from aduib_naming.naming.target import ParsedTarget
from aduib_naming.naming.update import AddressWatcher, Operation, Resolver, Update
from aduib_naming.observability.logging import LogContext, log_trace, log_warning
from aduib_naming.utils.net_utils import NetUtils

__all__ = [
    "DEFAULT_FREQ",
    "DEFAULT_PORT",
    "DEFAULT_SRV",
    "AddressDelta",
    "DNSResolver",
    "DNSWatcher",
    "build_dns",
    "compile_update",
    "dns_builder",
    "parse_target",
]

logger = logging.getLogger(__name__)

DEFAULT_PORT = "443"
DEFAULT_FREQ = 30 * 60.0
DEFAULT_SRV = "spine"

LookupSRV = Callable[[str, str, str], Awaitable[list[SrvRecord]]]
LookupHost = Callable[[str], Awaitable[list[str]]]


def parse_target(target: str, default_port: str = DEFAULT_PORT) -> tuple[str, str]:
    """Split a target into host and port.

    examples:
    target: "www.google.com" returns host: "www.google.com", port: "443"
    target: "ipv4-host:80" returns host: "ipv4-host", port: "80"
    target: "[ipv6-host]" returns host: "ipv6-host", port: "443"
    target: ":80" returns host: "localhost", port: "80"
    target: ":" returns host: "localhost", port: "443"

    Raises:
        InvalidTargetError: The target is empty or malformed.
    """
    if not target:
        raise InvalidTargetError(message="missing address")

    if NetUtils.parse_ip(target) is not None:
        return target, default_port

    try:
        host, port = NetUtils.split_host_port(target)
    except ValueError:
        pass
    else:
        return host or "localhost", port or default_port

    try:
        host, port = NetUtils.split_host_port(f"{target}:{default_port}")
    except ValueError:
        raise InvalidTargetError(message=f"invalid target address {target}") from None
    return host, port


@dataclass(frozen=True, slots=True)
class AddressDelta:
    """Addresses that appeared and vanished between two polls."""

    adds: tuple[Update, ...] = ()
    deletes: tuple[Update, ...] = ()

    @property
    def updates(self) -> list[Update]:
        return [*self.deletes, *self.adds]

    def __bool__(self) -> bool:
        return bool(self.adds or self.deletes)


def compile_update(previous: Mapping[str, Update], current: Mapping[str, Update]) -> AddressDelta:
    """Compare two resolved address sets.

    Addresses only in ``current`` are added, addresses only in ``previous`` are
    deleted and addresses in both are left out.
    """
    deletes = tuple(
        replace(update, op=Operation.DELETE)
        for addr, update in previous.items()
        if addr not in current
    )
    adds = tuple(update for addr, update in current.items() if addr not in previous)
    return AddressDelta(adds=adds, deletes=deletes)


class DNSResolver(Resolver):
    """Resolves DNS names and creates watchers polling the DNS server.

    Args:
        scope: Scope on which the watchers run.
        freq: Polling interval in seconds; defaults to the configured one.
        config: DNS settings (SRV service name, default port, nameservers).
        lookup_srv: SRV lookup function; queries the system nameservers by default.
        lookup_host: A/AAAA lookup function; uses the system resolver by default.
    """

    def __init__(
        self,
        scope: Scope | None = None,
        freq: float | None = None,
        *,
        config: DnsConfig | None = None,
        lookup_srv: LookupSRV | None = None,
        lookup_host: LookupHost | None = None,
    ) -> None:
        self.config = config or DnsConfig()
        self.scope = scope or Scope()
        self.freq = float(freq) if freq is not None else (self.config.freq_seconds or DEFAULT_FREQ)
        system = SystemLookup(
            self.config.nameservers,
            timeout=self.config.timeout_seconds,
            use_tcp=self.config.use_tcp,
        )
        self.lookup_srv: LookupSRV = lookup_srv or system.lookup_srv
        self.lookup_host: LookupHost = lookup_host or system.lookup_host

    async def resolve(self, target: str) -> AddressWatcher:
        """Create a watcher that watches the name resolution of ``target``.

        An IP literal needs no lookup: its watcher returns the address once.
        """
        host, port = parse_target(target, self.config.default_port or DEFAULT_PORT)

        formatted = NetUtils.format_ip(host)
        if formatted is not None:
            return StaticWatcher(f"{formatted}:{port}", self.scope)

        return DNSWatcher(self, host, port)


class DNSWatcher(Watcher[Update]):
    """Watches the name resolution of one host.

    The first ``next()`` queries the DNS server at once; afterwards a query
    happens every ``freq`` seconds until the resolved set changes.
    """

    def __init__(self, resolver: DNSResolver, host: str, port: str) -> None:
        self._resolver = resolver
        self.host = host
        self.port = port
        self._scope = resolver.scope.child()
        self._addrs: dict[str, Update] = {}
        self._delay = 0.0

    @property
    def addrs(self) -> dict[str, Update]:
        """The latest resolved address set."""
        return dict(self._addrs)

    async def next(self) -> list[Update]:
        """Return the resolved address delta of the target.

        When nothing changed, sleep for ``freq`` seconds and resolve again.
        """
        with LogContext(scheme="dns", target=self.host):
            while True:
                try:
                    await self._scope.sleep(self._delay)
                    result = await self._scope.guard(self._lookup())
                except ScopeCancelledError:
                    raise WatcherClosedError() from None
                self._delay = self._resolver.freq
                if result:
                    return result.updates

    async def close(self) -> None:
        self._scope.cancel()

    async def _lookup(self) -> AddressDelta:
        new_addrs = await self._lookup_srv()
        if not new_addrs:
            # Either no SRV record exists for the target or none of the
            # balancer addresses resolved: use the A records instead.
            new_addrs = await self._lookup_host()
        result = compile_update(self._addrs, new_addrs)
        self._addrs = new_addrs
        return result

    async def _lookup_srv(self) -> dict[str, Update]:
        config = self._resolver.config
        new_addrs: dict[str, Update] = {}
        try:
            records = await self._resolver.lookup_srv(config.srv_service or DEFAULT_SRV, config.srv_proto, self.host)
        except Exception as exc:
            log_trace(logger, "naming.dns.srv.fail", "Failed dns SRV record lookup", error=repr(exc))
            return new_addrs

        for record in records:
            try:
                lb_addrs = await self._resolver.lookup_host(record.target)
            except Exception as exc:
                log_warning(logger, "naming.dns.srv.fail", "Failed load balancer address dns lookup",
                            error=repr(exc), srv_target=record.target)
                continue
            for addr in lb_addrs:
                formatted = NetUtils.format_ip(addr)
                if formatted is None:
                    log_warning(logger, "naming.dns.srv.err", "Failed IP parsing", addr=addr)
                    continue
                key = f"{formatted}:{record.port}"
                new_addrs[key] = Update(key)
        return new_addrs

    async def _lookup_host(self) -> dict[str, Update]:
        new_addrs: dict[str, Update] = {}
        try:
            addrs = await self._resolver.lookup_host(self.host)
        except Exception as exc:
            log_trace(logger, "naming.dns.a.fail", "Failed dns A record lookup", error=repr(exc))
            return new_addrs

        for addr in addrs:
            formatted = NetUtils.format_ip(addr)
            if formatted is None:
                log_warning(logger, "naming.dns.a.err", "Failed IP parsing", addr=addr)
                continue
            key = f"{formatted}:{self.port}"
            new_addrs[key] = Update(key)
        return new_addrs


def dns_builder(
    config: DnsConfig | None = None,
    *,
    lookup_srv: LookupSRV | None = None,
    lookup_host: LookupHost | None = None,
) -> Callable[[Scope, ParsedTarget], Awaitable[AddressWatcher]]:
    """Return a registry builder creating DNS watchers with the given settings."""

    async def build(scope: Scope, target: ParsedTarget) -> AddressWatcher:
        freq: float | None = None
        raw = target.query_value("freq")
        if raw:
            try:
                freq = float(int(raw))
            except ValueError as exc:
                raise InvalidTargetError(message="error parsing DNS update frequency", data={"freq": raw}, cause=exc) from exc
            if freq <= 0:
                raise InvalidTargetError(message="DNS update frequency must be positive", data={"freq": raw})
        resolver = DNSResolver(scope, freq, config=config, lookup_srv=lookup_srv, lookup_host=lookup_host)
        return await resolver.resolve(target.endpoint)

    return build


build_dns = dns_builder()
