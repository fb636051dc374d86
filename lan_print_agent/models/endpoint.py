"""
Endpoint Model
==============

A printer's network address plus how it was found.
"""

import ipaddress
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any

from ..exceptions import ConfigurationError


class Origin(str, Enum):
    """Discovery strategy (or manual entry) that produced an endpoint."""

    SCAN = 'scan'
    BROADCAST = 'broadcast'
    STATIC = 'static'
    MANUAL = 'manual'


@dataclass(frozen=True)
class Endpoint:
    """
    Printer endpoint.

    Identity is ``(host, port)``: two endpoints found by different strategies
    compare and hash equal, which is what discovery deduplicates on.
    """

    host: str
    port: int = 9100
    name: str = field(default='', compare=False)
    origin: Origin = field(default=Origin.MANUAL, compare=False)

    # "low" for broadcast replies that only matched a plain-text marker
    confidence: str = field(default='confirmed', compare=False)

    # Per-printer overrides for the message and request transports
    message_port: Optional[int] = field(default=None, compare=False)
    request_port: Optional[int] = field(default=None, compare=False)

    def __post_init__(self):
        if not 0 <= self.port <= 0xFFFF:
            raise ConfigurationError(f'Invalid port: {self.port}', {'host': self.host})
        if not self.name:
            object.__setattr__(self, 'name', f'Printer-{self.host}:{self.port}')

    @property
    def key(self) -> tuple:
        return self.host, self.port

    def describe(self) -> str:
        return f'{self.host}:{self.port}'

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = {
            'host': self.host,
            'port': self.port,
            'name': self.name,
            'origin': self.origin.value,
            'confidence': self.confidence,
        }
        if self.message_port is not None:
            data['ws_port'] = self.message_port
        if self.request_port is not None:
            data['http_port'] = self.request_port
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], origin: Origin = Origin.MANUAL) -> 'Endpoint':
        """
        Create from a request body ``printer`` object.

        Accepts ``{host, port?, name?, ws_port?, http_port?}``.

        Raises:
            ConfigurationError: If host is missing or not an IPv4 literal
        """
        if not isinstance(data, dict) or not data.get('host'):
            raise ConfigurationError('Printer host required')

        host = _ipv4_host(data['host'])

        try:
            port = int(data.get('port') or 9100)
            message_port = int(data['ws_port']) if data.get('ws_port') else None
            request_port = int(data['http_port']) if data.get('http_port') else None
        except (TypeError, ValueError):
            raise ConfigurationError('Printer ports must be integers', {'host': host})

        return cls(
            host=host,
            port=port,
            name=data.get('name') or '',
            origin=origin,
            message_port=message_port,
            request_port=request_port,
        )

    @classmethod
    def parse(cls, address: str, name: str = '', origin: Origin = Origin.MANUAL) -> 'Endpoint':
        """
        Create from a ``host:port`` string; the port defaults to 9100.

        Raises:
            ConfigurationError: If the host is not an IPv4 literal or the
                port is not a number
        """
        host, _, port = address.strip().partition(':')
        try:
            port = int(port) if port else 9100
        except ValueError:
            raise ConfigurationError(f'Invalid printer address: {address}')
        return cls(host=_ipv4_host(host), port=port, name=name, origin=origin)


def _ipv4_host(host: Any) -> str:
    host = str(host)
    try:
        ipaddress.IPv4Address(host)
    except ValueError:
        raise ConfigurationError(f'Printer host must be an IPv4 address: {host}')
    return host
