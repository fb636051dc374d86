"""Tests for the Flask front door."""

import json
from unittest.mock import AsyncMock, Mock, patch

import pytest

from lan_print_agent import app as app_module
from lan_print_agent import config as config_module
from lan_print_agent.app import app, configure
from lan_print_agent.config import AgentConfig
from lan_print_agent.exceptions import ConnectionFailure, ProtocolFailure
from lan_print_agent.models import DispatchResult, Endpoint, Origin, Transport


@pytest.fixture
def agent_config(tmp_path, monkeypatch):
    monkeypatch.setattr(config_module, 'DATA_DIR', str(tmp_path))
    config = AgentConfig()
    configure(config)
    yield config
    configure(AgentConfig())


@pytest.fixture
def client(agent_config):
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def dispatch():
    """Replaces the router; returns the dispatch mock."""
    def deliver(job, timeout=None):
        endpoint = job.endpoint or Endpoint('192.168.2.38', 9100, name='system-default')
        return DispatchResult(Transport.parse(job.transport), endpoint, bytes_sent=42)

    mock = AsyncMock(side_effect=deliver)
    with patch.object(app_module, 'Dispatcher', return_value=Mock(dispatch=mock)):
        yield mock


class TestHealth:

    def test_health(self, client):
        response = client.get('/health')

        assert response.status_code == 200
        body = response.get_json()
        assert body['status'] == 'healthy'
        assert body['restartCount'] == 0
        assert body['serverConnection'] == 'disconnected'
        assert body['memory']['rss'] > 0

    def test_health_reports_supervisor(self, client, agent_config):
        supervisor = Mock()
        supervisor.restarts.count = 4
        supervisor.health.server_connected = True
        configure(agent_config, supervisor)

        body = client.get('/health').get_json()

        assert body['restartCount'] == 4
        assert body['serverConnection'] == 'connected'

    def test_network(self, client):
        with patch.object(app_module, 'ipv4_interfaces', return_value={'eth0': []}), \
                patch.object(app_module, 'get_primary_ip', return_value='10.0.0.2'):
            body = client.get('/api/network').get_json()

        assert body['interfaces'] == {'eth0': []}
        assert body['primaryIP'] == '10.0.0.2'

    def test_cors_headers(self, client):
        response = client.get('/health', headers={'Origin': 'http://pos.local'})

        assert response.headers.get('Access-Control-Allow-Origin') == '*'


class TestDiscovery:

    def test_discover(self, client):
        printers = [Endpoint('10.0.0.5', 9100, origin=Origin.SCAN)]
        engine = Mock(discover=AsyncMock(return_value=printers))

        with patch.object(app_module, 'DiscoveryEngine', return_value=engine):
            body = client.get('/api/discover-printers').get_json()

        assert body['success'] is True
        assert body['count'] == 1
        assert body['printers'][0]['host'] == '10.0.0.5'
        assert body['printers'][0]['origin'] == 'scan'


class TestPrint:

    def test_print(self, client, dispatch):
        response = client.post('/api/print', json={
            'data': 'TOPLAM: 10',
            'printer': {'host': '10.0.0.5', 'port': 9100},
            'protocol': 'raw',
        })

        assert response.status_code == 200
        body = response.get_json()
        assert body['success'] is True
        assert body['endpoint'] == '10.0.0.5:9100'
        job = dispatch.await_args.args[0]
        assert job.transport is Transport.STREAM

    def test_missing_body(self, client, dispatch):
        response = client.post('/api/print', data='nope', content_type='text/plain')

        assert response.status_code == 400
        dispatch.assert_not_called()

    def test_missing_data(self, client, dispatch):
        response = client.post('/api/print', json={'protocol': 'raw'})

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Print data is required'
        dispatch.assert_not_called()

    def test_unknown_protocol(self, client, dispatch):
        response = client.post('/api/print', json={'data': 'x', 'protocol': 'fax'})

        assert response.status_code == 400
        assert response.get_json()['kind'] == 'ConfigurationError'
        dispatch.assert_not_called()

    @pytest.mark.parametrize("error", [
        ConnectionFailure('Printer connection timeout to 10.0.0.5:9100', 'stream', '10.0.0.5:9100'),
        ProtocolFailure('HTTP print failed: 500', 'request', '10.0.0.5:9100', status_code=500),
    ])
    def test_delivery_failure_is_bad_gateway(self, client, dispatch, error):
        dispatch.side_effect = error

        response = client.post('/api/print', json={'data': 'x'})

        assert response.status_code == 502
        body = response.get_json()
        assert body['success'] is False
        assert body['error'] == error.message
        assert body['details']['endpoint'] == '10.0.0.5:9100'

    def test_test_print_uses_receipt(self, client, dispatch):
        response = client.post('/api/test-print', json={'printer': {'host': '10.0.0.5'}})

        assert response.status_code == 200
        job = dispatch.await_args.args[0]
        assert 'ISTANBUL RESTAURANT' in job.payload
        assert job.transport is Transport.STREAM
        assert job.endpoint.key == ('10.0.0.5', 9100)

    def test_test_print_default_printer(self, client, dispatch):
        response = client.post('/api/test-print')

        assert response.status_code == 200
        assert dispatch.await_args.args[0].endpoint is None


class TestConfigRoutes:

    def test_get(self, client, agent_config):
        body = client.get('/api/config').get_json()

        assert body == agent_config.to_dict()

    def test_update_persists(self, client, tmp_path):
        response = client.post('/api/config', json={'scan_timeout': 500, 'unknown': 1})

        assert response.status_code == 200
        body = response.get_json()
        assert body['changed'] == ['scan_timeout']
        assert body['config']['scan_timeout'] == 500
        saved = json.loads((tmp_path / 'config.json').read_text(encoding='utf-8'))
        assert saved['scan_timeout'] == 500

    def test_update_rejects_bad_value(self, client, agent_config):
        response = client.post('/api/config', json={'scan_timeout': 'slow'})

        assert response.status_code == 400
        assert agent_config.scan_timeout == 1000

    def test_update_requires_object(self, client):
        assert client.post('/api/config', json=[1, 2]).status_code == 400
