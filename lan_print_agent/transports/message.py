"""
Message Transport
=================

Websocket printing. Connects to ``ws://host:<message_port>/print``, sends a
single print envelope and waits for exactly one reply:

    -> {"type": "print", "data": "<payload>", "format": "escpos"}
    <- {"success": true}  |  {"success": false, "error": "Paper out"}

Both the connect and the reply wait have a deadline. Printer-side bridges
know the control-code format by its ESC/POS name.
"""

import asyncio
import json
from typing import Optional, Union

import aiohttp
from aiohttp import WSMsgType

from .base import BaseTransport
from ..exceptions import ConnectionFailure, ProtocolFailure
from ..logging_config import get_logger
from ..models import Endpoint, DispatchResult, Transport, PayloadFormat

logger = get_logger(__name__)

PRINT_PATH = '/print'

WIRE_FORMATS = {
    PayloadFormat.CONTROL_CODE: 'escpos',
    PayloadFormat.RAW: 'raw',
}


class MessageTransport(BaseTransport):
    """Sends one print envelope over a websocket and awaits the reply."""

    transport = Transport.MESSAGE

    def url_for(self, endpoint: Endpoint) -> str:
        port = endpoint.message_port or self.config.message_port
        return f'ws://{endpoint.host}:{port}{PRINT_PATH}'

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
        envelope = {
            'type': 'print',
            # JSON carries text; one char per byte keeps control codes intact
            'data': data.decode('latin-1'),
            'format': WIRE_FORMATS[fmt],
        }

        async with aiohttp.ClientSession() as session:
            try:
                ws = await asyncio.wait_for(session.ws_connect(url), self.connect_timeout(timeout))
            except asyncio.TimeoutError:
                raise ConnectionFailure(
                    f'WebSocket printer connection timeout to {url}', self.transport.value, target
                )
            except (aiohttp.ClientError, OSError) as e:
                raise ConnectionFailure(
                    f'WebSocket print error: {e}', self.transport.value, target
                )

            try:
                await ws.send_json(envelope)
                reply = await self._await_reply(ws, url, target)
            except (aiohttp.ClientError, OSError) as e:
                raise ProtocolFailure(
                    f'WebSocket print error: {e}', self.transport.value, target
                )
            finally:
                await ws.close()

        if not isinstance(reply, dict) or not reply.get('success'):
            error = reply.get('error') if isinstance(reply, dict) else None
            raise ProtocolFailure(
                error or 'WebSocket print failed', self.transport.value, target,
                details={'reply': reply}
            )

        logger.info("WebSocket print successful to %s", url)
        return DispatchResult(transport=self.transport, endpoint=endpoint, bytes_sent=len(data))

    async def _await_reply(self, ws: aiohttp.ClientWebSocketResponse, url: str, target: str):
        """Read the single reply frame within the reply deadline."""
        reply_timeout = self.config.message_reply_timeout / 1000
        try:
            message = await asyncio.wait_for(ws.receive(), reply_timeout)
        except asyncio.TimeoutError:
            raise ProtocolFailure(
                f'No reply from {url} within {reply_timeout:.1f}s', self.transport.value, target
            )

        if message.type in (WSMsgType.TEXT, WSMsgType.BINARY):
            try:
                return json.loads(message.data)
            except ValueError:
                raise ProtocolFailure(
                    'WebSocket reply is not JSON', self.transport.value, target,
                    details={'reply': str(message.data)[:200]}
                )

        raise ProtocolFailure(
            f'WebSocket channel closed before reply ({message.type.name})',
            self.transport.value, target
        )
