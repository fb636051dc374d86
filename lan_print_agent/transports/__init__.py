"""
LAN Print Agent Transports
==========================

Transport clients for the three delivery mechanisms.
"""

from typing import Optional

from .base import BaseTransport
from .stream import StreamTransport, probe_connection
from .message import MessageTransport
from .request import RequestTransport
from ..config import AgentConfig
from ..models import Transport

__all__ = ['BaseTransport', 'StreamTransport', 'MessageTransport', 'RequestTransport',
           'probe_connection', 'TRANSPORTS', 'get_transport']

# Transport registry
TRANSPORTS = {
    Transport.STREAM: StreamTransport,
    Transport.MESSAGE: MessageTransport,
    Transport.REQUEST: RequestTransport,
}


def get_transport(transport: Transport, config: Optional[AgentConfig] = None) -> BaseTransport:
    """Instantiate the client for ``transport``."""
    return TRANSPORTS[transport](config)
