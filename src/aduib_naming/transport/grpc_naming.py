"""Adapter from address updates to gRPC name resolution.

grpc-python resolves channel targets itself and accepts static address lists
in its ``ipv4:`` and ``ipv6:`` target schemes. :class:`AddressSet` folds the
updates of a watcher into such a target string, which a client uses to
(re)create its channel whenever the resolved set changes.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from aduib_naming.core.watcher import Watcher
from aduib_naming.exceptions import UnsupportedOperationError
from aduib_naming.naming.update import AddressWatcher, Operation, Resolver, Update
from aduib_naming.utils.net_utils import NetUtils

__all__ = [
    "AddressSet",
    "GrpcOperation",
    "GrpcResolver",
    "GrpcUpdate",
    "GrpcWatcher",
    "to_grpc_updates",
    "wrap_resolver",
]


class GrpcOperation(IntEnum):
    """Operations understood by the gRPC naming layer."""

    ADD = 0
    DELETE = 1


@dataclass(frozen=True, slots=True)
class GrpcUpdate:
    op: GrpcOperation
    addr: str
    metadata: Mapping[str, Any] | None = None


_OPERATIONS = {
    Operation.ADD: GrpcOperation.ADD,
    Operation.DELETE: GrpcOperation.DELETE,
}


def to_grpc_updates(updates: Iterable[Update]) -> list[GrpcUpdate]:
    """Map address updates to gRPC updates.

    Raises:
        UnsupportedOperationError: An update carries an unknown operation.
    """
    result: list[GrpcUpdate] = []
    for update in updates:
        op = _OPERATIONS.get(update.op)
        if op is None:
            raise UnsupportedOperationError(message=f"grpc: unsupported naming op {update.op!r}")
        result.append(GrpcUpdate(op=op, addr=update.addr, metadata=update.metadata))
    return result


class GrpcWatcher(Watcher[GrpcUpdate]):
    def __init__(self, watcher: AddressWatcher) -> None:
        self._watcher = watcher

    async def next(self) -> list[GrpcUpdate]:
        return to_grpc_updates(await self._watcher.next())

    async def close(self) -> None:
        await self._watcher.close()


class GrpcResolver:
    """Wraps a resolver so its watchers yield gRPC updates."""

    def __init__(self, resolver: Resolver) -> None:
        self._resolver = resolver

    async def resolve(self, target: str) -> GrpcWatcher:
        return GrpcWatcher(await self._resolver.resolve(target))


def wrap_resolver(resolver: Resolver) -> GrpcResolver:
    return GrpcResolver(resolver)


class AddressSet:
    """The current set of addresses of a target, in arrival order."""

    def __init__(self) -> None:
        self._addrs: dict[str, Mapping[str, Any] | None] = {}

    def apply(self, updates: Iterable[GrpcUpdate | Update]) -> bool:
        """Apply updates in order and tell whether the set changed."""
        changed = False
        for update in updates:
            if update.op == GrpcOperation.ADD:
                changed |= update.addr not in self._addrs
                self._addrs[update.addr] = update.metadata
            elif update.op == GrpcOperation.DELETE:
                if update.addr in self._addrs:
                    del self._addrs[update.addr]
                    changed = True
            else:
                raise UnsupportedOperationError(message=f"grpc: unsupported naming op {update.op!r}")
        return changed

    @property
    def addresses(self) -> list[str]:
        return list(self._addrs)

    def __len__(self) -> int:
        return len(self._addrs)

    def __contains__(self, addr: object) -> bool:
        return addr in self._addrs

    def channel_target(self) -> str | None:
        """Render the set as a gRPC channel target.

        All IPv4 addresses give ``ipv4:a:p,b:p`` and all IPv6 addresses give
        ``ipv6:[a]:p,[b]:p``. Otherwise, for instance with a passthrough host
        name, the first address is returned as is.

        Returns:
            The target, or None when the set is empty.
        """
        addrs = self.addresses
        if not addrs:
            return None
        versions = {_ip_version(addr) for addr in addrs}
        if versions == {4}:
            return "ipv4:" + ",".join(addrs)
        if versions == {6}:
            return "ipv6:" + ",".join(addrs)
        return addrs[0]


def _ip_version(addr: str) -> int | None:
    try:
        host, _ = NetUtils.split_host_port(addr)
    except ValueError:
        return None
    ip = NetUtils.parse_ip(host)
    return ip.version if ip is not None else None
