"""System DNS lookups used by the DNS watcher.

SRV records are queried with ``dnslib`` against the nameservers listed in
``/etc/resolv.conf`` (or the configured ones). Host names go through the event
loop's ``getaddrinfo``, which follows the system resolver configuration,
``/etc/hosts`` included.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from dnslib import QTYPE, DNSRecord

from aduib_naming.observability.logging import log_trace
from aduib_naming.utils.net_utils import NetUtils

__all__ = [
    "DnsLookupError",
    "SrvRecord",
    "SystemLookup",
    "lookup_host",
    "read_nameservers",
]

logger = logging.getLogger(__name__)

RESOLV_CONF = Path("/etc/resolv.conf")


class DnsLookupError(Exception):
    """Raised when a DNS lookup cannot produce an answer."""


@dataclass(frozen=True, slots=True)
class SrvRecord:
    target: str
    port: int
    priority: int = 0
    weight: int = 0


def read_nameservers(path: Path = RESOLV_CONF) -> list[tuple[str, int]]:
    """Return the ``nameserver`` entries of a resolv.conf file."""
    if not path.exists():
        return []
    nameservers: list[tuple[str, int]] = []
    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith(("#", ";")):
            continue
        parts = line.split()
        if parts[0] == "nameserver" and len(parts) >= 2:
            nameservers.append((parts[1], 53))
    return nameservers


def _srv_records_from_response(response: DNSRecord) -> list[SrvRecord]:
    records: list[SrvRecord] = []
    for rr in response.rr:
        if rr.rtype != QTYPE.SRV:
            continue
        rdata = rr.rdata
        records.append(
            SrvRecord(
                target=str(getattr(rdata, "target", "")).rstrip("."),
                port=int(getattr(rdata, "port", 0)),
                priority=int(getattr(rdata, "priority", 0)),
                weight=int(getattr(rdata, "weight", 0)),
            )
        )
    return records


class SystemLookup:
    """SRV lookups against a list of nameservers.

    Args:
        nameservers: ``(host, port)`` pairs; read from resolv.conf when empty.
        timeout: Per-query timeout in seconds.
        use_tcp: Query over TCP instead of UDP.
    """

    def __init__(
        self,
        nameservers: Sequence[tuple[str, int]] = (),
        *,
        timeout: float = 2.0,
        use_tcp: bool = False,
    ) -> None:
        self._nameservers = list(nameservers)
        self._timeout = timeout
        self._use_tcp = use_tcp

    def nameservers(self) -> list[tuple[str, int]]:
        return self._nameservers or read_nameservers()

    async def lookup_srv(self, service: str, proto: str, name: str) -> list[SrvRecord]:
        """Query the ``_service._proto.name`` SRV records.

        Raises:
            DnsLookupError: No nameserver answered.
        """
        qname = f"_{service}._{proto}.{name}"
        query = DNSRecord.question(qname, "SRV")
        nameservers = self.nameservers()
        if not nameservers:
            raise DnsLookupError(f"no nameserver available to look up {qname}")

        errors: list[str] = []
        for host, port in nameservers:
            try:
                response = await self._query(query, host, port, self._use_tcp)
                if response.header.tc and not self._use_tcp:
                    # Truncated UDP answer: the full record set only fits over TCP.
                    log_trace(logger, "naming.dns.srv.truncated", "Retrying truncated SRV answer over TCP",
                              qname=qname, nameserver=f"{host}:{port}")
                    response = await self._query(query, host, port, True)
            except Exception as exc:
                logger.debug("SRV query of %s via %s:%s failed: %s", qname, host, port, exc)
                errors.append(f"{host}:{port}: {exc}")
                continue
            return _srv_records_from_response(response)
        raise DnsLookupError(f"SRV lookup of {qname} failed: {'; '.join(errors)}")

    async def _query(self, query: DNSRecord, host: str, port: int, tcp: bool) -> DNSRecord:
        ip = NetUtils.parse_ip(host)
        data = await asyncio.to_thread(
            query.send,
            host,
            port=port,
            tcp=tcp,
            timeout=self._timeout,
            ipv6=ip is not None and ip.version == 6,
        )
        return DNSRecord.parse(data)

    async def lookup_host(self, host: str) -> list[str]:
        return await lookup_host(host)


async def lookup_host(host: str) -> list[str]:
    """Return the IP addresses of ``host`` (A and AAAA records).

    Raises:
        DnsLookupError: The name cannot be resolved.
    """
    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    except socket.gaierror as exc:
        raise DnsLookupError(f"lookup {host}: {exc}") from exc
    addrs: list[str] = []
    for _family, _type, _proto, _canonname, sockaddr in infos:
        addr = str(sockaddr[0])
        if addr not in addrs:
            addrs.append(addr)
    return addrs
