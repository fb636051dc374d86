"""
Dispatch Router
===============

Single entry point for printing: resolve the endpoint, pick the transport
client, delegate. Everything that can be rejected without I/O is rejected
here, before a socket is opened.
"""

from typing import Dict, Optional

from .config import AgentConfig
from .exceptions import ConfigurationError
from .logging_config import get_logger
from .models import Endpoint, Origin, PrintJob, DispatchResult, Transport, PayloadFormat
from .transports import TRANSPORTS, BaseTransport

logger = get_logger(__name__)

DEFAULT_PRINTER_NAME = 'system-default'


class Dispatcher:
    """Routes print jobs to transport clients. No retries, no encoding."""

    def __init__(self, config: Optional[AgentConfig] = None,
                 transports: Optional[Dict[Transport, BaseTransport]] = None):
        self.config = config or AgentConfig()
        self.transports = transports if transports is not None else {
            name: cls(self.config) for name, cls in TRANSPORTS.items()
        }

    def resolve_endpoint(self, job: PrintJob) -> Endpoint:
        """The job's endpoint, or the configured default printer."""
        if job.endpoint is not None:
            return job.endpoint
        return Endpoint.parse(self.config.default_printer_host,
                              name=DEFAULT_PRINTER_NAME, origin=Origin.MANUAL)

    def select(self, job: PrintJob) -> BaseTransport:
        """
        Transport client for the job.

        Raises:
            ConfigurationError: Unknown transport or no client registered
        """
        transport = Transport.parse(job.transport)
        client = self.transports.get(transport)
        if client is None:
            raise ConfigurationError(f'No client for transport: {transport.value}')
        return client

    async def dispatch(self, job: PrintJob, timeout: Optional[int] = None) -> DispatchResult:
        """
        Deliver a print job.

        Args:
            job: The print job
            timeout: Connect timeout override in milliseconds

        Returns:
            DispatchResult on success

        Raises:
            ConfigurationError: Missing payload, unknown transport or format
            ConnectionFailure: Printer unreachable
            ProtocolFailure: Printer rejected the job
            EncodingFailure: Payload not encodable
        """
        if job.payload is None or job.payload == '':
            raise ConfigurationError('Print data is required')

        client = self.select(job)
        fmt = PayloadFormat.parse(job.format)
        endpoint = self.resolve_endpoint(job)

        logger.info("Printing via %s/%s to %s (%s)",
                    client.transport.value, fmt.value, endpoint.describe(), endpoint.name)
        try:
            result = await client.deliver(endpoint, job.payload, fmt, timeout)
        except Exception as e:
            logger.error("Print to %s failed: %s", endpoint.describe(), e)
            raise

        return result
