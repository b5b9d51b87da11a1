"""
Data models for DNS Speed Tester.

Defines the resolver record that flows through a test run, test domains,
single-query results, per-probe samples and the final run result.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class Transport(Enum):
    """DNS transport protocols."""
    UDP = "udp"
    TCP = "tcp"


class RecordType(Enum):
    """DNS record types to query."""
    A = "A"
    AAAA = "AAAA"
    MX = "MX"
    TXT = "TXT"


class QueryStatus(Enum):
    """Result status of a single DNS query."""
    SUCCESS = "success"
    TIMEOUT = "timeout"
    NXDOMAIN = "nxdomain"
    SERVFAIL = "servfail"
    REFUSED = "refused"
    OTHER_RCODE = "other_rcode"
    ERROR = "error"

    @property
    def has_response(self) -> bool:
        """True when the resolver answered, whatever the rcode."""
        return self not in (QueryStatus.TIMEOUT, QueryStatus.ERROR)


class ServerStatus(Enum):
    """Measurement state of a resolver record."""
    UNTESTED = "untested"
    TESTING = "testing"
    SUCCESS = "success"
    TIMEOUT = "timeout"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ServerStatus.SUCCESS, ServerStatus.TIMEOUT, ServerStatus.ERROR)


class ProbeKind(Enum):
    """The four independent latency probes."""
    TCP = "tcp"
    UDP = "udp"
    RANDOM = "random"
    PING = "ping"


SUCCESS_DETAIL = "DNS response time: {latency}ms"
TIMEOUT_DETAIL = "DNS query failed or timed out"


@dataclass
class ResolverConfig:
    """
    A DNS resolver and its mutable measurement state.

    ``latency`` is only set while ``status`` is SUCCESS. The record is
    mutated in place by the tester that owns it during a run.
    """
    name: str
    primary_ip: str
    secondary_ip: Optional[str] = None
    is_custom: bool = False
    latency: Optional[int] = None
    status: ServerStatus = ServerStatus.UNTESTED
    status_detail: str = ""

    @property
    def latency_display(self) -> str:
        if self.latency is not None:
            return f"{self.latency} ms"
        return self.status.value

    @property
    def addresses(self) -> list[str]:
        """Primary and (if any) secondary address."""
        return [ip for ip in (self.primary_ip, self.secondary_ip) if ip]

    def mark_testing(self) -> None:
        self.status = ServerStatus.TESTING
        self.latency = None
        self.status_detail = ""

    def mark_success(self, latency: int) -> None:
        self.status = ServerStatus.SUCCESS
        self.latency = latency
        self.status_detail = SUCCESS_DETAIL.format(latency=latency)

    def mark_timeout(self) -> None:
        self.status = ServerStatus.TIMEOUT
        self.latency = None
        self.status_detail = TIMEOUT_DETAIL

    def mark_error(self, message: str) -> None:
        self.status = ServerStatus.ERROR
        self.latency = None
        self.status_detail = message


@dataclass
class TestDomain:
    """A domain that resolvers are timed against."""
    __test__ = False  # not a pytest class

    name: str
    domain: str
    category: str = "Common"
    is_custom: bool = False

    def __str__(self) -> str:
        return f"{self.name} [{self.domain}]"


@dataclass
class QueryResult:
    """Result of a single timed DNS query."""
    domain: str
    record_type: RecordType
    resolver_ip: Optional[str]
    transport: Transport
    status: QueryStatus
    latency_ms: Optional[int] = None
    timestamp: datetime = field(default_factory=datetime.now)
    error_message: Optional[str] = None

    @property
    def is_success(self) -> bool:
        """Check if the query got a NOERROR response."""
        return self.status == QueryStatus.SUCCESS


@dataclass
class ProbeSamples:
    """Latency samples (ms) from the four probes for one resolver."""
    tcp: Optional[int] = None
    udp: Optional[int] = None
    random: Optional[int] = None
    ping: Optional[int] = None

    def set(self, kind: ProbeKind, value: Optional[int]) -> None:
        setattr(self, kind.value, value)

    def values(self) -> list[int]:
        """The non-null samples, in probe order."""
        return [v for v in (self.tcp, self.udp, self.random, self.ping) if v is not None]


@dataclass
class RunResult:
    """Outcome of one fan-out run over a resolver collection."""
    started_at: datetime
    completed_at: datetime
    domain: str
    tested_count: int
    total_count: int
    resolvers: list[ResolverConfig] = field(default_factory=list)

    @property
    def duration_seconds(self) -> float:
        """Total run duration in seconds."""
        return (self.completed_at - self.started_at).total_seconds()

    @property
    def winner(self) -> Optional[ResolverConfig]:
        """First measured resolver in the final ordering, if any."""
        for resolver in self.resolvers:
            if resolver.latency is not None:
                return resolver
        return None
