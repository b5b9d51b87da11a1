"""
DNS transport implementations.

Provides transport classes for the two classic DNS transports:
- UDP (connectionless)
- TCP (connection-oriented, length-prefixed)

Every query acquires its own socket or connection and releases it before
returning, on success and on failure alike. Nothing is cached or reused.
"""

import asyncio
import struct
import time
from abc import ABC, abstractmethod

import dns.message
import dns.query

from .models import Transport

DNS_PORT = 53


def elapsed_ms(start_ns: int) -> int:
    """Whole milliseconds since ``start_ns`` (perf_counter_ns), truncated."""
    return (time.perf_counter_ns() - start_ns) // 1_000_000


class BaseTransport(ABC):
    """Base class for DNS transports."""

    transport_type: Transport

    @abstractmethod
    async def query(
        self,
        message: dns.message.Message,
        resolver_ip: str,
        timeout: float,
    ) -> tuple[dns.message.Message, int]:
        """
        Send a DNS query and return the response.

        Returns:
            Tuple of (response, elapsed milliseconds)

        Raises:
            asyncio.TimeoutError, OSError or dns.exception.DNSException
            on transport failure.
        """


class UDPTransport(BaseTransport):
    """Standard DNS over UDP."""

    transport_type = Transport.UDP

    async def query(
        self,
        message: dns.message.Message,
        resolver_ip: str,
        timeout: float,
    ) -> tuple[dns.message.Message, int]:
        """Send DNS query over UDP."""
        start = time.perf_counter_ns()

        # dns.query.udp opens and closes its own socket
        loop = asyncio.get_running_loop()
        response = await loop.run_in_executor(
            None,
            lambda: dns.query.udp(
                message,
                resolver_ip,
                timeout=timeout,
                port=DNS_PORT,
            ),
        )

        return response, elapsed_ms(start)


class TCPTransport(BaseTransport):
    """DNS over TCP, one connection per query."""

    transport_type = Transport.TCP

    async def query(
        self,
        message: dns.message.Message,
        resolver_ip: str,
        timeout: float,
    ) -> tuple[dns.message.Message, int]:
        """
        Send DNS query over TCP; the timing includes the handshake.

        ``timeout`` bounds the whole exchange, from connect to the last
        response byte.
        """
        start = time.perf_counter_ns()
        response_data, latency = await asyncio.wait_for(
            self._exchange(message.to_wire(), resolver_ip, start),
            timeout=timeout,
        )
        return dns.message.from_wire(response_data), latency

    async def _exchange(self, wire: bytes, resolver_ip: str, start: int) -> tuple[bytes, int]:
        reader, writer = await asyncio.open_connection(resolver_ip, DNS_PORT)

        try:
            # DNS over TCP requires a two-byte length prefix
            writer.write(struct.pack("!H", len(wire)) + wire)
            await writer.drain()

            (response_length,) = struct.unpack("!H", await reader.readexactly(2))
            response_data = await reader.readexactly(response_length)
            return response_data, elapsed_ms(start)
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass


_TRANSPORTS: dict[Transport, type[BaseTransport]] = {
    Transport.UDP: UDPTransport,
    Transport.TCP: TCPTransport,
}


def create_transport(transport_type: Transport) -> BaseTransport:
    """A fresh transport for ``transport_type``; raises ValueError if unsupported."""
    try:
        return _TRANSPORTS[transport_type]()
    except KeyError:
        raise ValueError(f"Unsupported transport: {transport_type}") from None
