"""
Core DNS query engine.

Executes single timed DNS queries through one transport and turns every
outcome, including transport failures, into a QueryResult. Callers never
see an exception from ``DNSQueryEngine.query``.
"""

import asyncio
from datetime import datetime
from typing import Optional

import dns.exception
import dns.message
import dns.rcode
import dns.rdatatype
import dns.resolver

from .models import QueryResult, QueryStatus, RecordType, Transport
from .transports import BaseTransport, create_transport
from .utils.logging import get_logger

log = get_logger(__name__)

_RCODE_STATUS = {
    dns.rcode.NOERROR: QueryStatus.SUCCESS,
    dns.rcode.NXDOMAIN: QueryStatus.NXDOMAIN,
    dns.rcode.SERVFAIL: QueryStatus.SERVFAIL,
    dns.rcode.REFUSED: QueryStatus.REFUSED,
}


def system_nameserver() -> str:
    """First nameserver from the host's resolver configuration."""
    nameservers = dns.resolver.get_default_resolver().nameservers
    if not nameservers:
        raise dns.resolver.NoResolverConfiguration("no nameservers configured")
    return str(nameservers[0])


class DNSQueryEngine:
    """
    Timed DNS queries over a single transport.

    No response cache and no retries: one query is one attempt.
    """

    def __init__(
        self,
        transport_type: Transport = Transport.UDP,
        timeout: float = 3.0,
        transport: Optional[BaseTransport] = None,
    ):
        """
        Initialize the query engine.

        Args:
            transport_type: Transport protocol to use
            timeout: Query timeout in seconds
            transport: Pre-built transport (defaults to create_transport)
        """
        self.transport_type = transport_type
        self.timeout = timeout
        self.transport = transport or create_transport(transport_type)

    def _create_query_message(
        self,
        domain: str,
        record_type: RecordType,
    ) -> dns.message.Message:
        """Create a recursive DNS query message."""
        rdtype = dns.rdatatype.from_text(record_type.value)
        return dns.message.make_query(domain, rdtype)

    @staticmethod
    def _status_of(response: dns.message.Message) -> QueryStatus:
        """Map the response rcode; ERROR is reserved for queries that got no answer."""
        return _RCODE_STATUS.get(response.rcode(), QueryStatus.OTHER_RCODE)

    async def query(
        self,
        domain: str,
        record_type: RecordType,
        resolver_ip: Optional[str] = None,
    ) -> QueryResult:
        """
        Execute a single DNS query.

        Args:
            domain: Domain name to query
            record_type: Type of DNS record to request
            resolver_ip: Resolver to send the query to; None uses the
                host's default resolver

        Returns:
            QueryResult with the latency set whenever a response arrived
        """
        try:
            target = resolver_ip or system_nameserver()
            message = self._create_query_message(domain, record_type)
            response, latency = await self.transport.query(message, target, timeout=self.timeout)
        except (asyncio.TimeoutError, dns.exception.Timeout) as e:
            log.debug("%s %s via %s timed out: %s", domain, record_type.value, resolver_ip, e)
            return self._failure(domain, record_type, resolver_ip, QueryStatus.TIMEOUT,
                                 f"Query timed out after {self.timeout}s")
        except Exception as e:
            log.debug("%s %s via %s failed: %s", domain, record_type.value, resolver_ip, e)
            return self._failure(domain, record_type, resolver_ip, QueryStatus.ERROR, str(e))

        return QueryResult(
            domain=domain,
            record_type=record_type,
            resolver_ip=resolver_ip,
            transport=self.transport_type,
            status=self._status_of(response),
            latency_ms=latency,
            timestamp=datetime.now(),
        )

    def _failure(
        self,
        domain: str,
        record_type: RecordType,
        resolver_ip: Optional[str],
        status: QueryStatus,
        message: str,
    ) -> QueryResult:
        return QueryResult(
            domain=domain,
            record_type=record_type,
            resolver_ip=resolver_ip,
            transport=self.transport_type,
            status=status,
            latency_ms=None,
            timestamp=datetime.now(),
            error_message=message,
        )
