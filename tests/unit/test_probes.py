from __future__ import annotations

import re
from typing import Optional

import dns.message
import dns.rcode
import pytest

from dns_speedtester.models import ProbeKind, QueryStatus, RecordType, ResolverConfig, Transport
from dns_speedtester.probes import (
    IcmpEchoProbe,
    RandomSubdomainProbe,
    TcpResolveProbe,
    UdpResolveProbe,
    default_probes,
)
from dns_speedtester.query_engine import DNSQueryEngine
from dns_speedtester.transports import BaseTransport
from tests.helpers import ScriptedEngine, make_result


class TestTcpResolveProbe:
    @pytest.mark.asyncio
    async def test_warmup_then_three_timed_queries(self, settings, resolver) -> None:
        engine = ScriptedEngine([
            make_result(QueryStatus.SUCCESS, 999),  # warm-up, ignored
            make_result(QueryStatus.SUCCESS, 30),
            make_result(QueryStatus.SUCCESS, 40),
            make_result(QueryStatus.SUCCESS, 51),
        ])
        probe = TcpResolveProbe(settings, engine_factory=engine.factory)

        latency = await probe.measure(resolver, "www.baidu.com")

        assert latency == 40
        assert engine.transport_type is Transport.TCP
        assert engine.timeout == settings.tcp_timeout
        assert engine.calls == [
            (settings.warmup_domain, RecordType.A, "192.0.2.53"),
            ("www.baidu.com", RecordType.A, "192.0.2.53"),
            ("www.baidu.com", RecordType.A, "192.0.2.53"),
            ("www.baidu.com", RecordType.A, "192.0.2.53"),
        ]

    @pytest.mark.asyncio
    async def test_only_noerror_responses_count(self, settings, resolver) -> None:
        engine = ScriptedEngine([
            make_result(QueryStatus.TIMEOUT),
            make_result(QueryStatus.SUCCESS, 30),
            make_result(QueryStatus.NXDOMAIN, 50),
            make_result(QueryStatus.SUCCESS, 41),
        ])
        probe = TcpResolveProbe(settings, engine_factory=engine.factory)

        assert await probe.measure(resolver, "example.com") == 35

    @pytest.mark.asyncio
    async def test_no_successful_sample_is_none(self, settings, resolver) -> None:
        engine = ScriptedEngine([
            make_result(QueryStatus.SUCCESS, 10),
            make_result(QueryStatus.TIMEOUT),
            make_result(QueryStatus.SERVFAIL, 12),
            make_result(QueryStatus.ERROR),
        ])
        probe = TcpResolveProbe(settings, engine_factory=engine.factory)

        assert await probe.measure(resolver, "example.com") is None

    @pytest.mark.asyncio
    async def test_unbound_queries_use_system_resolver(self, settings, resolver) -> None:
        settings = settings.model_copy(update={"bind_to_resolver": False})
        engine = ScriptedEngine([make_result(QueryStatus.SUCCESS, 5)] * 4)
        probe = TcpResolveProbe(settings, engine_factory=engine.factory)

        await probe.measure(resolver, "example.com")

        assert {ip for _, _, ip in engine.calls} == {None}


class TestUdpResolveProbe:
    @pytest.mark.asyncio
    async def test_queries_uncommon_record_types(self, settings, resolver) -> None:
        engine = ScriptedEngine([
            make_result(QueryStatus.SUCCESS, 10),
            make_result(QueryStatus.SUCCESS, 20),
            make_result(QueryStatus.SUCCESS, 30),
        ])
        probe = UdpResolveProbe(settings, engine_factory=engine.factory)

        assert await probe.measure(resolver, "www.qq.com") == 20
        assert engine.transport_type is Transport.UDP
        assert engine.timeout == settings.udp_timeout
        assert [rtype for _, rtype, _ in engine.calls] == [RecordType.AAAA, RecordType.MX, RecordType.TXT]
        assert {domain for domain, _, _ in engine.calls} == {"www.qq.com"}

    @pytest.mark.asyncio
    async def test_any_response_counts(self, settings, resolver) -> None:
        engine = ScriptedEngine([
            make_result(QueryStatus.NXDOMAIN, 20),
            make_result(QueryStatus.TIMEOUT),
            make_result(QueryStatus.SUCCESS, 31),
        ])
        probe = UdpResolveProbe(settings, engine_factory=engine.factory)

        assert await probe.measure(resolver, "example.com") == 25


class TestRandomSubdomainProbe:
    @pytest.mark.asyncio
    async def test_queries_fresh_random_names(self, settings, resolver) -> None:
        engine = ScriptedEngine([
            make_result(QueryStatus.NXDOMAIN, 15),
            make_result(QueryStatus.NXDOMAIN, 25),
            make_result(QueryStatus.TIMEOUT),
        ])
        probe = RandomSubdomainProbe(settings, engine_factory=engine.factory)

        assert await probe.measure(resolver, "www.baidu.com") == 20

        domains = [domain for domain, _, _ in engine.calls]
        assert len(set(domains)) == 3
        assert all(re.match(r"^[a-z0-9]{8}\.example\.com$", d) for d in domains)
        assert {rtype for _, rtype, _ in engine.calls} == {RecordType.A}
        assert engine.transport_type is Transport.UDP


@pytest.mark.asyncio
async def test_engine_failure_becomes_no_signal(settings, resolver) -> None:
    engine = ScriptedEngine([make_result(QueryStatus.SUCCESS, 10), RuntimeError("socket exploded")])
    probe = TcpResolveProbe(settings, engine_factory=engine.factory)

    assert await probe.measure(resolver, "example.com") is None


class TestIcmpEchoProbe:
    @pytest.mark.asyncio
    async def test_mean_of_successful_echoes_scaled(self, settings, resolver) -> None:
        replies: list[Optional[float] | Exception] = [10.7, None, 20.2, 30.0]
        calls = []

        async def fake_ping(host: str, timeout: float, payload_size: int) -> Optional[float]:
            calls.append((host, timeout, payload_size))
            reply = replies.pop(0)
            if isinstance(reply, Exception):
                raise reply
            return reply

        probe = IcmpEchoProbe(settings, ping=fake_ping)

        # truncated RTTs 10, 20, 30 -> mean 20 -> 20 * 1.2
        assert await probe.measure(resolver, "ignored.example") == 24
        assert calls == [("192.0.2.53", settings.ping_timeout, settings.ping_payload_size)] * 4

    @pytest.mark.asyncio
    async def test_os_errors_skip_the_echo(self, settings, resolver) -> None:
        replies: list[Optional[float] | Exception] = [PermissionError("no ping"), 50.0, OSError("gone"), None]

        async def fake_ping(host: str, timeout: float, payload_size: int) -> Optional[float]:
            reply = replies.pop(0)
            if isinstance(reply, Exception):
                raise reply
            return reply

        probe = IcmpEchoProbe(settings, ping=fake_ping)

        assert await probe.measure(resolver, "example.com") == 60

    @pytest.mark.asyncio
    async def test_no_echo_reply_is_none(self, settings, resolver) -> None:
        async def silent_ping(host: str, timeout: float, payload_size: int) -> Optional[float]:
            return None

        probe = IcmpEchoProbe(settings, ping=silent_ping)

        assert await probe.measure(resolver, "example.com") is None

    @pytest.mark.asyncio
    async def test_pings_primary_even_when_unbound(self, settings) -> None:
        settings = settings.model_copy(update={"bind_to_resolver": False, "ping_count": 1})
        hosts = []

        async def fake_ping(host: str, timeout: float, payload_size: int) -> Optional[float]:
            hosts.append(host)
            return 1.0

        probe = IcmpEchoProbe(settings, ping=fake_ping)
        await probe.measure(ResolverConfig(name="X", primary_ip="198.51.100.7"), "example.com")

        assert hosts == ["198.51.100.7"]


def test_default_probes_order(settings) -> None:
    kinds = [probe.kind for probe in default_probes(settings)]
    assert kinds == [ProbeKind.TCP, ProbeKind.UDP, ProbeKind.RANDOM, ProbeKind.PING]


class RcodeTransport(BaseTransport):
    """Answers every query with a fixed rcode after a fixed latency."""

    transport_type = Transport.UDP

    def __init__(self, rcode: int, latency: int):
        self.rcode = rcode
        self.latency = latency

    async def query(self, message, resolver_ip, timeout):
        response = dns.message.make_response(message)
        response.set_rcode(self.rcode)
        return response, self.latency


@pytest.mark.asyncio
@pytest.mark.parametrize("probe_class", [UdpResolveProbe, RandomSubdomainProbe])
@pytest.mark.parametrize("rcode", [dns.rcode.NOTIMP, dns.rcode.FORMERR])
async def test_unusual_rcodes_still_count_as_udp_samples(settings, resolver, probe_class, rcode) -> None:
    def engine_factory(transport_type: Transport, timeout: float) -> DNSQueryEngine:
        return DNSQueryEngine(transport_type, timeout, transport=RcodeTransport(rcode, 20))

    probe = probe_class(settings, engine_factory=engine_factory)

    assert await probe.measure(resolver, "example.com") == 20


@pytest.mark.asyncio
async def test_unusual_rcodes_do_not_count_for_tcp(settings, resolver) -> None:
    def engine_factory(transport_type: Transport, timeout: float) -> DNSQueryEngine:
        return DNSQueryEngine(transport_type, timeout, transport=RcodeTransport(dns.rcode.NOTIMP, 20))

    probe = TcpResolveProbe(settings, engine_factory=engine_factory)

    assert await probe.measure(resolver, "example.com") is None
