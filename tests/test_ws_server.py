"""Tests for the websocket front door."""

import json
from unittest.mock import AsyncMock, Mock

import pytest
from aiohttp import ClientSession, test_utils

from lan_print_agent.exceptions import ConnectionFailure
from lan_print_agent.models import DispatchResult, Endpoint, Origin, Transport
from lan_print_agent.models.messages import Discover, DiscoverResult, Ping, Pong, Print, PrintResult, Status
from lan_print_agent.ws_server import MessageServer


@pytest.fixture
def dispatcher():
    def deliver(job, timeout=None):
        return DispatchResult(Transport.parse(job.transport), job.endpoint or Endpoint('10.0.0.1'), 7)

    return Mock(dispatch=AsyncMock(side_effect=deliver))


@pytest.fixture
def engine():
    return Mock(discover=AsyncMock(return_value=[Endpoint('10.0.0.5', 9100, origin=Origin.BROADCAST)]))


@pytest.fixture
def server(config, dispatcher, engine):
    return MessageServer(config, dispatcher=dispatcher, engine=engine)


class TestHandleMessage:

    @pytest.mark.anyio
    async def test_ping(self, server):
        assert isinstance(await server.handle_message(Ping()), Pong)

    @pytest.mark.anyio
    async def test_reply_envelope_is_unexpected(self, server):
        reply = await server.handle_message(Status())

        assert reply.message == 'Unexpected message: Status'

    @pytest.mark.anyio
    async def test_print_success(self, server, dispatcher):
        reply = await server.handle_message(Print({'data': 'x', 'printer': {'host': '10.0.0.5'}, 'protocol': 'http'}))

        assert isinstance(reply, PrintResult)
        assert reply.result['success'] is True
        assert reply.result['method'] == 'request'
        dispatcher.dispatch.assert_awaited_once()

    @pytest.mark.anyio
    async def test_print_failure_is_a_result(self, server, dispatcher):
        dispatcher.dispatch.side_effect = ConnectionFailure('refused', 'stream', '10.0.0.5:9100')

        reply = await server.handle_message(Print({'data': 'x'}))

        assert reply.result['success'] is False
        assert reply.result['error'] == 'refused'
        assert reply.result['kind'] == 'ConnectionFailure'

    @pytest.mark.anyio
    async def test_print_validation_failure_is_a_result(self, server, dispatcher):
        reply = await server.handle_message(Print({'data': 'x', 'protocol': 'fax'}))

        assert reply.result['success'] is False
        dispatcher.dispatch.assert_not_called()

    @pytest.mark.anyio
    async def test_discover_updates_known_printers(self, server):
        reply = await server.handle_message(Discover())

        assert isinstance(reply, DiscoverResult)
        assert reply.printers[0]['origin'] == 'broadcast'
        assert server.known_printers == ['10.0.0.5:9100']


class TestChannel:

    @pytest.mark.anyio
    async def test_session(self, server):
        async with test_utils.TestServer(server.make_app()) as test_server:
            async with ClientSession() as session:
                async with session.ws_connect(test_server.make_url('/')) as ws:
                    status = await ws.receive_json()

                    await ws.send_json({'type': 'ping'})
                    pong = await ws.receive_json()

                    await ws.send_str('not json')
                    error = await ws.receive_json()

                    await ws.send_json({'type': 'pong', 'timestamp': 1})
                    unexpected = await ws.receive_json()

                    await ws.send_json({'type': 'print', 'payload': {'data': 'TOPLAM: 1'}})
                    result = await ws.receive_json()

        assert status == Status(True, []).to_wire()
        assert pong['type'] == 'pong' and isinstance(pong['timestamp'], int)
        assert error['type'] == 'error'
        assert unexpected == {'type': 'error', 'message': 'Unexpected message: Pong'}
        assert result['type'] == 'print_result'
        assert result['data']['bytes_sent'] == 7
        assert json.dumps(result)
