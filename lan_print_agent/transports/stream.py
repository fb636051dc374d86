"""
Stream Transport
================

Raw TCP printing (port 9100 style). The connect phase has a deadline;
the write does not, and no acknowledgement is read back.
"""

import asyncio
from typing import Optional, Union

from .base import BaseTransport
from ..exceptions import ConnectionFailure
from ..logging_config import get_logger
from ..models import Endpoint, DispatchResult, Transport, PayloadFormat

logger = get_logger(__name__)


async def probe_connection(host: str, port: int, timeout: float = 1.0) -> bool:
    """
    Readiness probe: can a TCP connection be opened?

    Never raises for an unreachable target.

    Args:
        host: IPv4 address
        port: TCP port
        timeout: Connect deadline in seconds
    """
    try:
        _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout)
    except (OSError, asyncio.TimeoutError):
        return False

    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass
    return True


class StreamTransport(BaseTransport):
    """Writes the payload to a TCP socket and half-closes it."""

    transport = Transport.STREAM

    async def deliver(
        self,
        endpoint: Endpoint,
        payload: Union[str, bytes],
        fmt: PayloadFormat = PayloadFormat.CONTROL_CODE,
        timeout: Optional[int] = None,
    ) -> DispatchResult:
        data = self.prepare(payload, fmt)
        deadline = self.connect_timeout(timeout)
        target = endpoint.describe()

        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(endpoint.host, endpoint.port), deadline
            )
        except asyncio.TimeoutError:
            raise ConnectionFailure(
                f'Printer connection timeout to {target}', self.transport.value, target
            )
        except OSError as e:
            raise ConnectionFailure(
                f'TCP print failed: {e.strerror or e}', self.transport.value, target
            )

        logger.debug("Connected to printer %s", target)
        try:
            writer.write(data)
            await writer.drain()
            if writer.can_write_eof():
                writer.write_eof()
        except OSError as e:
            raise ConnectionFailure(
                f'TCP print failed: {e.strerror or e}', self.transport.value, target
            )
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass

        logger.info("Sent %d bytes to %s", len(data), target)
        return DispatchResult(transport=self.transport, endpoint=endpoint, bytes_sent=len(data))
