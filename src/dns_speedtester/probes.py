"""
Latency probes.

Four independent ways of estimating the round-trip latency to a resolver:
- TCP resolve: warm-up, then 3 timed A queries over TCP
- UDP resolve: one timed query each for AAAA, MX and TXT over UDP
- Random subdomain: 3 timed A queries for freshly generated names
- ICMP echo: 4 echo requests, mean RTT scaled by a correction factor

A probe returns whole milliseconds or None. Failed samples are skipped and
no exception ever leaves ``measure``. Fixed delays between steps are pacing
against rate limiting, not retries.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

from .config import Settings, get_settings
from .icmp import ping_once
from .models import ProbeKind, QueryResult, RecordType, ResolverConfig, Transport
from .query_engine import DNSQueryEngine
from .resolvers import generate_random_domain
from .statistics import StatisticsEngine
from .utils.logging import get_logger

log = get_logger(__name__)

TCP_QUERY_COUNT = 3
UDP_RECORD_TYPES = (RecordType.AAAA, RecordType.MX, RecordType.TXT)
RANDOM_QUERY_COUNT = 3

EngineFactory = Callable[[Transport, float], DNSQueryEngine]
PingFunction = Callable[[str, float, int], Awaitable[Optional[float]]]


async def pause(delay: float) -> None:
    if delay > 0:
        await asyncio.sleep(delay)


class BaseProbe(ABC):
    """Base class for latency probes."""

    kind: ProbeKind

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    async def measure(self, resolver: ResolverConfig, domain: str) -> Optional[int]:
        """
        Measure latency to ``resolver``.

        Args:
            resolver: Resolver under test
            domain: Test domain (ignored by probes that pick their own names)

        Returns:
            Latency in ms, or None when no sample succeeded
        """
        try:
            latency = await self._measure(resolver, domain)
        except Exception as e:
            log.debug("%s probe for %s failed: %s", self.kind.value, resolver.name, e)
            return None

        log.debug("%s probe for %s: %s", self.kind.value, resolver.name, latency)
        return latency

    @abstractmethod
    async def _measure(self, resolver: ResolverConfig, domain: str) -> Optional[int]:
        ...


class DNSProbe(BaseProbe):
    """Probe built on timed DNS queries."""

    transport_type: Transport

    def __init__(
        self,
        settings: Optional[Settings] = None,
        engine_factory: Optional[EngineFactory] = None,
    ):
        super().__init__(settings)
        self.engine_factory = engine_factory or DNSQueryEngine

    @property
    @abstractmethod
    def timeout(self) -> float:
        ...

    def target(self, resolver: ResolverConfig) -> Optional[str]:
        """Address queries go to; None means the host's default resolver."""
        return resolver.primary_ip if self.settings.bind_to_resolver else None

    async def run_series(
        self,
        engine: DNSQueryEngine,
        queries: list[tuple[str, RecordType]],
        resolver_ip: Optional[str],
        delay: float,
        accept: Callable[[QueryResult], bool],
    ) -> Optional[int]:
        """
        Run queries one after another and average the accepted latencies.

        Args:
            engine: Engine to send the queries with
            queries: (domain, record type) pairs, in order
            resolver_ip: Target resolver
            delay: Pause between consecutive queries
            accept: Whether a result counts as a sample

        Returns:
            Truncated mean of accepted latencies, None if none was accepted
        """
        samples: list[int] = []

        for index, (domain, record_type) in enumerate(queries):
            if index:
                await pause(delay)
            result = await engine.query(domain, record_type, resolver_ip)
            if result.latency_ms is not None and accept(result):
                samples.append(result.latency_ms)

        return StatisticsEngine.probe_mean(samples)


class TcpResolveProbe(DNSProbe):
    """
    Connection-oriented resolution.

    One untimed warm-up query, a short settle delay, then timed A queries.
    Only NOERROR responses count.
    """

    kind = ProbeKind.TCP
    transport_type = Transport.TCP

    @property
    def timeout(self) -> float:
        return self.settings.tcp_timeout

    async def _measure(self, resolver: ResolverConfig, domain: str) -> Optional[int]:
        engine = self.engine_factory(self.transport_type, self.timeout)
        resolver_ip = self.target(resolver)

        # warm-up, result ignored
        await engine.query(self.settings.warmup_domain, RecordType.A, resolver_ip)
        await pause(self.settings.warmup_delay)

        return await self.run_series(
            engine,
            [(domain, RecordType.A)] * TCP_QUERY_COUNT,
            resolver_ip,
            self.settings.tcp_query_delay,
            accept=lambda result: result.is_success,
        )


class UdpResolveProbe(DNSProbe):
    """
    Connectionless resolution of uncommon record types.

    Any response counts, including NXDOMAIN or an empty answer.
    """

    kind = ProbeKind.UDP
    transport_type = Transport.UDP

    @property
    def timeout(self) -> float:
        return self.settings.udp_timeout

    async def _measure(self, resolver: ResolverConfig, domain: str) -> Optional[int]:
        engine = self.engine_factory(self.transport_type, self.timeout)
        return await self.run_series(
            engine,
            [(domain, record_type) for record_type in UDP_RECORD_TYPES],
            self.target(resolver),
            self.settings.udp_query_delay,
            accept=lambda result: result.status.has_response,
        )


class RandomSubdomainProbe(DNSProbe):
    """
    Cache-busting resolution of freshly generated names.

    NXDOMAIN is the expected answer and still counts.
    """

    kind = ProbeKind.RANDOM
    transport_type = Transport.UDP

    @property
    def timeout(self) -> float:
        return self.settings.udp_timeout

    async def _measure(self, resolver: ResolverConfig, domain: str) -> Optional[int]:
        engine = self.engine_factory(self.transport_type, self.timeout)
        queries = [
            (generate_random_domain(self.settings.random_domain_suffix), RecordType.A)
            for _ in range(RANDOM_QUERY_COUNT)
        ]
        return await self.run_series(
            engine,
            queries,
            self.target(resolver),
            self.settings.udp_query_delay,
            accept=lambda result: result.status.has_response,
        )


class IcmpEchoProbe(BaseProbe):
    """
    ICMP echo to the resolver's primary address.

    The mean RTT is multiplied by ``ping_correction`` to approximate the
    DNS processing overhead on top of bare network latency.
    """

    kind = ProbeKind.PING

    def __init__(
        self,
        settings: Optional[Settings] = None,
        ping: Optional[PingFunction] = None,
    ):
        super().__init__(settings)
        self.ping = ping or ping_once

    async def _measure(self, resolver: ResolverConfig, domain: str) -> Optional[int]:
        settings = self.settings
        rtts: list[int] = []

        for attempt in range(settings.ping_count):
            if attempt:
                await pause(settings.ping_delay)
            try:
                rtt = await self.ping(resolver.primary_ip, settings.ping_timeout, settings.ping_payload_size)
            except OSError as e:
                log.debug("ping %s failed: %s", resolver.primary_ip, e)
                continue
            if rtt is not None:
                rtts.append(int(rtt))

        mean = StatisticsEngine.probe_mean(rtts)
        if mean is None:
            return None
        return int(mean * settings.ping_correction)


def default_probes(settings: Optional[Settings] = None) -> list[BaseProbe]:
    """The four probes in their measurement order."""
    return [
        TcpResolveProbe(settings),
        UdpResolveProbe(settings),
        RandomSubdomainProbe(settings),
        IcmpEchoProbe(settings),
    ]
