"""Tests for the agent SDK client."""

from unittest.mock import Mock, patch

import requests

from lan_print_agent.client import AgentClient


def response(body):
    return Mock(json=Mock(return_value=body))


class TestAgentClient:

    def test_is_online(self):
        client = AgentClient('http://agent:3001/')

        with patch('lan_print_agent.client.requests.get', return_value=response({'status': 'healthy'})) as get:
            assert client.is_online() is True

        get.assert_called_once_with('http://agent:3001/health', timeout=30)

    def test_print_body(self):
        client = AgentClient()

        with patch('lan_print_agent.client.requests.post', return_value=response({'success': True})) as post:
            client.print('TOPLAM: 10', printer={'host': '10.0.0.5', 'port': 9100}, protocol='websocket')

        post.assert_called_once_with('http://localhost:3001/api/print', json={
            'data': 'TOPLAM: 10',
            'protocol': 'websocket',
            'format': 'escpos',
            'printer': {'host': '10.0.0.5', 'port': 9100},
        }, timeout=30)

    def test_discover_printers(self):
        printers = [{'host': '10.0.0.5', 'port': 9100}]

        with patch('lan_print_agent.client.requests.get', return_value=response({'printers': printers})):
            assert AgentClient().discover_printers() == printers

    def test_update_config(self):
        with patch('lan_print_agent.client.requests.post', return_value=response({'success': True})) as post:
            AgentClient().update_config(scan_timeout=500)

        assert post.call_args.kwargs['json'] == {'scan_timeout': 500}

    def test_unreachable_agent(self):
        with patch('lan_print_agent.client.requests.get', side_effect=requests.exceptions.ConnectionError):
            result = AgentClient('http://agent:3001').health()

        assert result == {'success': False, 'error': 'Cannot connect to http://agent:3001'}

    def test_timeout(self):
        with patch('lan_print_agent.client.requests.get', side_effect=requests.exceptions.Timeout):
            assert AgentClient().discover_printers() == []
