"""Test doubles shared across the unit tests."""

from __future__ import annotations

from typing import Optional

from dns_speedtester.models import (
    QueryResult,
    QueryStatus,
    RecordType,
    Transport,
)


def make_result(status: QueryStatus, latency: Optional[int] = None) -> QueryResult:
    """A QueryResult as DNSQueryEngine would produce it."""
    return QueryResult(
        domain="example.com",
        record_type=RecordType.A,
        resolver_ip="192.0.2.53",
        transport=Transport.UDP,
        status=status,
        latency_ms=latency if status.has_response else None,
    )


class ScriptedEngine:
    """Query engine returning canned results in order and recording calls."""

    def __init__(self, results: list[QueryResult | Exception]):
        self.results = list(results)
        self.calls: list[tuple[str, RecordType, Optional[str]]] = []
        self.transport_type: Optional[Transport] = None
        self.timeout: Optional[float] = None

    def factory(self, transport_type: Transport, timeout: float) -> "ScriptedEngine":
        self.transport_type = transport_type
        self.timeout = timeout
        return self

    async def query(
        self,
        domain: str,
        record_type: RecordType,
        resolver_ip: Optional[str] = None,
    ) -> QueryResult:
        self.calls.append((domain, record_type, resolver_ip))
        outcome = self.results.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome
