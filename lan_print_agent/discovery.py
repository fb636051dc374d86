"""
Printer Discovery
=================

Finds printers reachable right now with three strategies run concurrently:

- Subnet probe: TCP connect to every host of the local /24 on the
  candidate printer ports, gated by a semaphore
- Broadcast probe: UDP discovery tokens to the broadcast address, replies
  collected for a fixed window
- Static probe: a short list of common printer addresses, tried in order

Results are merged on ``(host, port)``; the first strategy to report an
address keeps its origin. No state survives between ``discover`` calls.
"""

import asyncio
import json
import socket
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import psutil

from .config import (
    AgentConfig,
    STATIC_CANDIDATES,
    DISCOVERY_TOKENS,
    DISCOVERY_PORTS,
    RAW_PORT,
)
from .exceptions import ConfigurationError
from .logging_config import get_logger
from .models import Endpoint, Origin
from .transports import probe_connection

logger = get_logger(__name__)

BROADCAST_TEXT_MARKERS = ('PRINTER', 'ESC')


def ipv4_interfaces() -> Dict[str, List[Dict[str, str]]]:
    """Non-internal IPv4 addresses per interface."""
    interfaces = {}
    for name, addresses in psutil.net_if_addrs().items():
        active = [
            {'address': addr.address, 'netmask': addr.netmask, 'family': 'IPv4'}
            for addr in addresses
            if addr.family == socket.AF_INET and not addr.address.startswith('127.')
        ]
        if active:
            interfaces[name] = active
    return interfaces


def get_primary_ip() -> str:
    """First non-loopback IPv4 address, or 127.0.0.1 when there is none."""
    for addresses in ipv4_interfaces().values():
        return addresses[0]['address']
    return '127.0.0.1'


def subnet_prefix(address: str) -> str:
    """``192.168.1.23`` -> ``192.168.1``"""
    return '.'.join(address.split('.')[:3])


class SubnetProbe:
    """Connect probe over the local /24 and the candidate ports."""

    origin = Origin.SCAN

    def __init__(
        self,
        config: AgentConfig,
        prefix: Optional[str] = None,
        probe=probe_connection,
    ):
        self.config = config
        self.prefix = prefix
        self.probe = probe

    def targets(self, prefix: str) -> List[Tuple[str, int]]:
        return [
            (f'{prefix}.{suffix}', port)
            for suffix in self.config.scan_range
            for port in self.config.candidate_ports
        ]

    async def run(self) -> List[Endpoint]:
        prefix = self.prefix or subnet_prefix(get_primary_ip())
        targets = self.targets(prefix)
        timeout = self.config.scan_timeout / 1000
        gate = asyncio.Semaphore(max(1, self.config.scan_concurrency))

        logger.info("Scanning subnet %s.x (%d probes)", prefix, len(targets))

        async def attempt(host: str, port: int) -> Optional[Endpoint]:
            async with gate:
                if await self.probe(host, port, timeout):
                    return Endpoint(host=host, port=port, origin=self.origin)
            return None

        results = await asyncio.gather(
            *(attempt(host, port) for host, port in targets),
            return_exceptions=True,
        )
        found = [r for r in results if isinstance(r, Endpoint)]
        logger.debug("Subnet scan found %d endpoint(s)", len(found))
        return found


class BroadcastListener(asyncio.DatagramProtocol):
    """Collects printer announcements during the listen window."""

    def __init__(self):
        self.transport: Optional[asyncio.DatagramTransport] = None
        self.found: List[Endpoint] = []

    def connection_made(self, transport: asyncio.DatagramTransport) -> None:
        self.transport = transport

    def datagram_received(self, data: bytes, addr: Tuple[str, int]) -> None:
        endpoint = parse_announcement(data, addr[0])
        if endpoint is not None:
            logger.debug("Broadcast reply from %s", addr[0])
            self.found.append(endpoint)

    def error_received(self, exc: Exception) -> None:
        logger.debug("Broadcast socket error: %s", exc)


def parse_announcement(data: bytes, source: str) -> Optional[Endpoint]:
    """
    Turn one broadcast reply into an endpoint.

    The host is always the replier's source address. A JSON object with
    ``type == "printer"`` is a confirmed announcement; anything else that
    mentions a printer marker in plain text is kept with low confidence.
    """
    text = data.decode('utf-8', errors='replace')
    try:
        reply = json.loads(text)
    except ValueError:
        reply = None

    if isinstance(reply, dict):
        if reply.get('type') != 'printer':
            return None
        try:
            port = int(reply.get('port') or RAW_PORT)
            return Endpoint(host=source, port=port, name=reply.get('name') or f'Printer-{source}',
                            origin=Origin.BROADCAST)
        except (TypeError, ValueError, ConfigurationError) as e:
            logger.debug("Ignoring announcement from %s: %s", source, e)
            return None

    if reply is None and any(marker in text for marker in BROADCAST_TEXT_MARKERS):
        return Endpoint(host=source, port=RAW_PORT, name=f'Printer-{source}',
                        origin=Origin.BROADCAST, confidence='low')
    return None


class BroadcastProbe:
    """UDP broadcast of the discovery tokens."""

    origin = Origin.BROADCAST

    def __init__(
        self,
        config: AgentConfig,
        tokens: Sequence[bytes] = DISCOVERY_TOKENS,
        ports: Sequence[int] = DISCOVERY_PORTS,
    ):
        self.config = config
        self.tokens = tokens
        self.ports = ports

    async def run(self) -> List[Endpoint]:
        loop = asyncio.get_running_loop()
        address = self.config.broadcast_address
        try:
            transport, listener = await loop.create_datagram_endpoint(
                BroadcastListener, local_addr=('0.0.0.0', 0), allow_broadcast=True
            )
        except OSError as e:
            logger.warning("Broadcast discovery unavailable: %s", e)
            return []

        try:
            for token in self.tokens:
                for port in self.ports:
                    try:
                        transport.sendto(token, (address, port))
                    except OSError as e:
                        logger.debug("Broadcast to %s:%s failed: %s", address, port, e)
            await asyncio.sleep(self.config.broadcast_window / 1000)
        finally:
            transport.close()

        logger.debug("Broadcast discovery collected %d reply(ies)", len(listener.found))
        return list(listener.found)


class StaticProbe:
    """Sequential probe of well-known printer addresses."""

    origin = Origin.STATIC

    def __init__(
        self,
        config: AgentConfig,
        candidates: Iterable[Tuple[str, int]] = STATIC_CANDIDATES,
        probe=probe_connection,
    ):
        self.config = config
        self.candidates = list(candidates)
        self.probe = probe

    async def run(self) -> List[Endpoint]:
        timeout = self.config.static_timeout / 1000
        found = []
        for host, port in self.candidates:
            if await self.probe(host, port, timeout):
                found.append(Endpoint(host=host, port=port, origin=self.origin))
        return found


class DiscoveryEngine:
    """Runs the discovery strategies and merges their results."""

    def __init__(self, config: Optional[AgentConfig] = None, strategies: Optional[Sequence[Any]] = None):
        self.config = config or AgentConfig()
        self.strategies = list(strategies) if strategies is not None else [
            SubnetProbe(self.config),
            BroadcastProbe(self.config),
            StaticProbe(self.config),
        ]

    async def discover(self) -> List[Endpoint]:
        """
        Discover printers.

        Returns:
            Endpoints, unique by ``(host, port)``; a failing strategy
            contributes nothing
        """
        logger.info("Discovering printers on network...")
        results = await asyncio.gather(
            *(strategy.run() for strategy in self.strategies),
            return_exceptions=True,
        )

        merged: Dict[Tuple[str, int], Endpoint] = {}
        for strategy, result in zip(self.strategies, results):
            if isinstance(result, BaseException):
                logger.warning("%s failed: %s", type(strategy).__name__, result)
                continue
            for endpoint in result:
                merged.setdefault(endpoint.key, endpoint)

        printers = list(merged.values())
        logger.info("Found %d printer(s)", len(printers))
        return printers
