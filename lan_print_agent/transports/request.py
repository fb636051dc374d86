"""
Request Transport
=================

HTTP printing: one ``POST http://host:<request_port>/print`` with the bytes
as an octet-stream body.
"""

import asyncio
from typing import Optional, Union

import aiohttp

from .base import BaseTransport
from ..exceptions import ConnectionFailure, ProtocolFailure
from ..logging_config import get_logger
from ..models import Endpoint, DispatchResult, Transport, PayloadFormat

logger = get_logger(__name__)

PRINT_PATH = '/print'


class RequestTransport(BaseTransport):
    """Posts the payload and checks the status code."""

    transport = Transport.REQUEST

    def url_for(self, endpoint: Endpoint) -> str:
        port = endpoint.request_port or self.config.request_port
        return f'http://{endpoint.host}:{port}{PRINT_PATH}'

    async def deliver(
        self,
        endpoint: Endpoint,
        payload: Union[str, bytes],
        fmt: PayloadFormat = PayloadFormat.CONTROL_CODE,
        timeout: Optional[int] = None,
    ) -> DispatchResult:
        data = self.prepare(payload, fmt)
        url = self.url_for(endpoint)
        target = endpoint.describe()
        headers = {
            'Content-Type': 'application/octet-stream',
            'Content-Length': str(len(data)),
        }
        client_timeout = aiohttp.ClientTimeout(total=self.connect_timeout(timeout))

        try:
            async with aiohttp.ClientSession(timeout=client_timeout) as session:
                async with session.post(url, data=data, headers=headers) as response:
                    status = response.status
                    reason = response.reason
        except asyncio.TimeoutError:
            raise ConnectionFailure(f'HTTP print timeout to {url}', self.transport.value, target)
        except (aiohttp.ClientError, OSError) as e:
            raise ConnectionFailure(f'HTTP print error: {e}', self.transport.value, target)

        if not 200 <= status < 300:
            raise ProtocolFailure(
                f'HTTP print failed: {status} {reason or ""}'.strip(),
                self.transport.value, target, status_code=status
            )

        logger.info("HTTP print successful to %s", url)
        return DispatchResult(transport=self.transport, endpoint=endpoint, bytes_sent=len(data))
