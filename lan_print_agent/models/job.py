"""
Print Job Model
===============

A print request and the result of dispatching it. Neither is persisted;
both live for the duration of one dispatch call.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any

from ..exceptions import ConfigurationError
from .endpoint import Endpoint


class Transport(str, Enum):
    """Wire mechanism used to deliver a payload."""

    STREAM = 'stream'
    MESSAGE = 'message'
    REQUEST = 'request'

    @classmethod
    def parse(cls, name: str) -> 'Transport':
        """
        Resolve a wire name, including the legacy ``raw``/``tcp``,
        ``websocket`` and ``http`` protocol names.

        Raises:
            ConfigurationError: For an unrecognized name
        """
        if isinstance(name, cls):
            return name
        value = str(name).strip().lower()
        value = TRANSPORT_ALIASES.get(value, value)
        try:
            return cls(value)
        except ValueError:
            raise ConfigurationError(
                f'Unsupported protocol: {name}',
                {'valid': [t.value for t in cls] + sorted(TRANSPORT_ALIASES)}
            )


TRANSPORT_ALIASES = {
    'raw': 'stream',
    'tcp': 'stream',
    'websocket': 'message',
    'ws': 'message',
    'http': 'request',
}


class PayloadFormat(str, Enum):
    """How the payload is handed to the printer."""

    RAW = 'raw'
    CONTROL_CODE = 'control-code'

    @classmethod
    def parse(cls, name: str) -> 'PayloadFormat':
        if isinstance(name, cls):
            return name
        value = str(name).strip().lower()
        if value == 'escpos':
            value = cls.CONTROL_CODE.value
        try:
            return cls(value)
        except ValueError:
            raise ConfigurationError(
                f'Unsupported format: {name}',
                {'valid': [f.value for f in cls] + ['escpos']}
            )


@dataclass
class PrintJob:
    """Print job as received from a front door."""

    payload: Any
    transport: Transport = Transport.STREAM
    format: PayloadFormat = PayloadFormat.CONTROL_CODE
    endpoint: Optional[Endpoint] = None

    @classmethod
    def from_request(cls, data: Dict[str, Any]) -> 'PrintJob':
        """
        Create from a front door request ``{data, printer?, protocol, format}``.

        Raises:
            ConfigurationError: Missing data, unknown protocol or format,
                malformed printer
        """
        if not isinstance(data, dict) or data.get('data') in (None, ''):
            raise ConfigurationError('Print data is required')

        printer = data.get('printer')
        endpoint = Endpoint.from_dict(printer) if isinstance(printer, dict) and printer.get('host') else None

        return cls(
            payload=data['data'],
            transport=Transport.parse(data.get('protocol') or Transport.STREAM.value),
            format=PayloadFormat.parse(data.get('format') or PayloadFormat.CONTROL_CODE.value),
            endpoint=endpoint,
        )


@dataclass
class DispatchResult:
    """Successful delivery of one print job."""

    transport: Transport
    endpoint: Endpoint
    bytes_sent: int = 0
    success: bool = True
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def message(self) -> str:
        return f'Printed successfully to {self.endpoint.describe()} via {self.transport.value}'

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'success': self.success,
            'method': self.transport.value,
            'endpoint': self.endpoint.describe(),
            'printer': self.endpoint.name,
            'bytes_sent': self.bytes_sent,
            'message': self.message,
            'timestamp': self.timestamp.isoformat(),
        }
