"""
Base Transport
==============

Abstract base class for transport clients.
"""

from abc import ABC, abstractmethod
from typing import Optional, Union

from ..config import AgentConfig
from ..encoder import encode_control_codes
from ..exceptions import EncodingFailure
from ..logging_config import get_logger
from ..models import Endpoint, DispatchResult, Transport, PayloadFormat

logger = get_logger(__name__)


class BaseTransport(ABC):
    """Delivers one payload to one endpoint. Never retries."""

    transport: Transport

    def __init__(self, config: Optional[AgentConfig] = None):
        """Initialize transport with agent configuration."""
        self.config = config or AgentConfig()

    def connect_timeout(self, timeout_ms: Optional[int] = None) -> float:
        """Connect deadline in seconds, the configured default unless overridden."""
        if timeout_ms is None:
            timeout_ms = self.config.printer_discovery_timeout
        return timeout_ms / 1000

    def prepare(self, payload: Union[str, bytes], fmt: PayloadFormat) -> bytes:
        """
        Produce the bytes to send.

        Control-code payloads go through the encoder; raw text is sent as
        single-byte characters and raw bytes pass through untouched.

        Raises:
            EncodingFailure: If the payload cannot be represented
        """
        if fmt == PayloadFormat.CONTROL_CODE:
            return encode_control_codes(payload)
        if isinstance(payload, (bytes, bytearray)):
            return bytes(payload)
        if isinstance(payload, str):
            return payload.encode('latin-1', errors='replace')
        raise EncodingFailure(
            'Raw payload must be text or bytes',
            {'received': type(payload).__name__}
        )

    @abstractmethod
    async def deliver(
        self,
        endpoint: Endpoint,
        payload: Union[str, bytes],
        fmt: PayloadFormat = PayloadFormat.CONTROL_CODE,
        timeout: Optional[int] = None,
    ) -> DispatchResult:
        """
        Deliver a payload.

        Args:
            endpoint: Target printer
            payload: Text (or bytes for raw format)
            fmt: Payload format
            timeout: Connect timeout in milliseconds

        Returns:
            DispatchResult on success

        Raises:
            ConnectionFailure: Connect refused, unreachable or timed out
            ProtocolFailure: The printer side reported failure
            EncodingFailure: The payload cannot be encoded
        """
