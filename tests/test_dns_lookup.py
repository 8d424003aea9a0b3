from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from dnslib import QTYPE, RR, SRV, DNSRecord

from aduib_naming.naming import SrvRecord, SystemLookup
from aduib_naming.naming.dns_lookup import DnsLookupError, read_nameservers


def _srv_answer(data: bytes, *, truncate: bool = False) -> bytes:
    request = DNSRecord.parse(data)
    reply = request.reply()
    if truncate:
        reply.header.tc = 1
        return reply.pack()
    qname = str(request.q.qname)
    reply.add_answer(RR(qname, QTYPE.SRV, rdata=SRV(priority=1, weight=5, port=9000, target="lb1.internal."), ttl=60))
    reply.add_answer(RR(qname, QTYPE.SRV, rdata=SRV(priority=2, weight=5, port=9001, target="lb2.internal."), ttl=60))
    return reply.pack()


class UdpResponder(asyncio.DatagramProtocol):
    def __init__(self, *, truncate: bool = False) -> None:
        self.truncate = truncate
        self.queries = 0
        self.transport: asyncio.DatagramTransport | None = None

    def connection_made(self, transport: asyncio.DatagramTransport) -> None:
        self.transport = transport

    def datagram_received(self, data: bytes, addr) -> None:
        self.queries += 1
        self.transport.sendto(_srv_answer(data, truncate=self.truncate), addr)


async def _serve_udp(host: str, port: int = 0, *, truncate: bool = False):
    loop = asyncio.get_running_loop()
    responder = UdpResponder(truncate=truncate)
    try:
        transport, _ = await loop.create_datagram_endpoint(lambda: responder, local_addr=(host, port))
    except OSError as exc:
        pytest.skip(f"cannot bind UDP on {host}: {exc}")
    return transport, responder


EXPECTED = [SrvRecord("lb1.internal", 9000, 1, 5), SrvRecord("lb2.internal", 9001, 2, 5)]


@pytest.mark.asyncio
async def test_srv_lookup_over_ipv6_nameserver():
    transport, responder = await _serve_udp("::1")
    port = transport.get_extra_info("sockname")[1]
    try:
        records = await SystemLookup([("::1", port)], timeout=2.0).lookup_srv("spine", "tcp", "payments.internal")
    finally:
        transport.close()

    assert records == EXPECTED
    assert responder.queries == 1


@pytest.mark.asyncio
async def test_truncated_udp_answer_is_retried_over_tcp():
    tcp_queries: list[str] = []

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        size = int.from_bytes(await reader.readexactly(2), "big")
        data = await reader.readexactly(size)
        tcp_queries.append(str(DNSRecord.parse(data).q.qname))
        answer = _srv_answer(data)
        writer.write(len(answer).to_bytes(2, "big") + answer)
        await writer.drain()
        writer.close()
        await writer.wait_closed()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    transport, responder = await _serve_udp("127.0.0.1", port, truncate=True)
    try:
        records = await SystemLookup([("127.0.0.1", port)], timeout=2.0).lookup_srv("spine", "tcp", "payments.internal")
    finally:
        transport.close()
        server.close()
        await server.wait_closed()

    assert records == EXPECTED
    assert responder.queries == 1
    assert tcp_queries == ["_spine._tcp.payments.internal."]


@pytest.mark.asyncio
async def test_lookup_without_nameserver_fails(monkeypatch: pytest.MonkeyPatch):
    lookup = SystemLookup()
    monkeypatch.setattr(lookup, "nameservers", lambda: [])

    with pytest.raises(DnsLookupError):
        await lookup.lookup_srv("spine", "tcp", "payments.internal")


def test_read_nameservers(tmp_path: Path):
    resolv = tmp_path / "resolv.conf"
    resolv.write_text(
        "# generated\nsearch internal\nnameserver 10.0.0.53\nnameserver 2001:db8::53\n"
        "; link-local\nnameserver fe80::1%eth0\n",
        encoding="utf-8",
    )

    assert read_nameservers(resolv) == [("10.0.0.53", 53), ("2001:db8::53", 53), ("fe80::1%eth0", 53)]
    assert read_nameservers(tmp_path / "missing.conf") == []
