"""
Websocket Front Door
====================

aiohttp websocket server for clients that keep a channel open to the agent.
Sends a status envelope on connect, then answers print, discover and ping
envelopes (see ``models.messages``). Runs its own event loop in a
background thread next to the Flask front door.
"""

import asyncio
import threading
from typing import List, Optional

from aiohttp import web, WSMsgType

from .config import AgentConfig
from .discovery import DiscoveryEngine
from .exceptions import PrintAgentError
from .logging_config import get_logger
from .models import PrintJob
from .models.messages import (
    Message, Print, PrintResult, Discover, DiscoverResult, Ping, Pong, Status, Error,
    decode_message, encode_message,
)
from .router import Dispatcher

logger = get_logger(__name__)

MAX_PAYLOAD = 10 * 1024 * 1024


class MessageServer:
    """Websocket server answering agent envelopes."""

    def __init__(self, config: Optional[AgentConfig] = None,
                 dispatcher: Optional[Dispatcher] = None,
                 engine: Optional[DiscoveryEngine] = None):
        self.config = config or AgentConfig()
        self.dispatcher = dispatcher or Dispatcher(self.config)
        self.engine = engine or DiscoveryEngine(self.config)
        self.known_printers: List[str] = []
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stop: Optional[asyncio.Event] = None
        self._thread: Optional[threading.Thread] = None

    def make_app(self) -> web.Application:
        app = web.Application(client_max_size=MAX_PAYLOAD)
        app.router.add_get('/', self.handle)
        return app

    async def handle(self, request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse(max_msg_size=MAX_PAYLOAD)
        await ws.prepare(request)
        logger.info("WebSocket connection from %s", request.remote)

        await ws.send_str(encode_message(Status(connected=True, printers=self.known_printers)))

        async for frame in ws:
            if frame.type == WSMsgType.TEXT:
                try:
                    reply = await self.handle_message(decode_message(frame.data))
                except PrintAgentError as e:
                    logger.warning("WebSocket message error: %s", e.message)
                    reply = Error(e.message)
                if reply is not None:
                    await ws.send_str(encode_message(reply))
            elif frame.type == WSMsgType.ERROR:
                logger.error("WebSocket error: %s", ws.exception())

        logger.info("WebSocket connection closed")
        return ws

    async def handle_message(self, message: Message) -> Optional[Message]:
        """Reply for one decoded envelope."""
        match message:
            case Print(request=request):
                try:
                    result = await self.dispatcher.dispatch(PrintJob.from_request(request))
                except PrintAgentError as e:
                    return PrintResult(e.to_dict())
                return PrintResult(result.to_dict())
            case Discover():
                printers = await self.engine.discover()
                self.known_printers = [p.describe() for p in printers]
                return DiscoverResult([p.to_dict() for p in printers])
            case Ping():
                return Pong()
            case _:
                logger.warning("Unexpected message type: %s", type(message).__name__)
                return Error(f'Unexpected message: {type(message).__name__}')

    async def serve(self, host: str, port: int) -> None:
        """Serve until ``stop`` is called."""
        self._loop = asyncio.get_running_loop()
        self._stop = asyncio.Event()

        runner = web.AppRunner(self.make_app())
        await runner.setup()
        site = web.TCPSite(runner, host, port)
        await site.start()
        logger.info("WebSocket server running on port %s", port)
        try:
            await self._stop.wait()
        finally:
            await runner.cleanup()
            logger.info("WebSocket server stopped")

    def start_in_thread(self, host: str = '0.0.0.0', port: Optional[int] = None) -> threading.Thread:
        """Run ``serve`` on its own loop in a daemon thread."""
        port = port or self.config.ws_port
        self._thread = threading.Thread(
            target=asyncio.run, args=(self.serve(host, port),),
            name='WebSocket', daemon=True
        )
        self._thread.start()
        return self._thread

    def stop(self) -> None:
        if self._loop is not None and self._stop is not None:
            self._loop.call_soon_threadsafe(self._stop.set)
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
