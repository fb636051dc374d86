"""Tests for printer discovery."""

import asyncio
import json
import socket
from collections import namedtuple
from unittest.mock import patch

import pytest

from lan_print_agent.discovery import (
    BroadcastProbe,
    DiscoveryEngine,
    StaticProbe,
    SubnetProbe,
    get_primary_ip,
    ipv4_interfaces,
    parse_announcement,
    subnet_prefix,
)
from lan_print_agent.models import Endpoint, Origin


class FakeStrategy:
    def __init__(self, endpoints=None, error=None):
        self.endpoints = endpoints or []
        self.error = error

    async def run(self):
        if self.error:
            raise self.error
        return list(self.endpoints)


class TestSubnetProbe:

    @pytest.mark.anyio
    async def test_finds_exactly_the_listening_targets(self, config):
        config.candidate_ports = [9100, 8080]
        listening = {('10.1.2.7', 9100), ('10.1.2.7', 8080), ('10.1.2.200', 9100)}

        async def probe(host, port, timeout):
            return (host, port) in listening

        found = await SubnetProbe(config, prefix='10.1.2', probe=probe).run()

        assert {e.key for e in found} == listening
        assert all(e.origin == Origin.SCAN for e in found)

    @pytest.mark.anyio
    async def test_nothing_listening(self, config):
        async def probe(host, port, timeout):
            return False

        assert await SubnetProbe(config, prefix='10.1.2', probe=probe).run() == []

    def test_targets_cover_range_and_ports(self, config):
        config.scan_range_start, config.scan_range_end = 10, 12
        config.candidate_ports = [9100, 631]

        targets = SubnetProbe(config).targets('192.168.5')

        assert len(targets) == 6
        assert targets[0] == ('192.168.5.10', 9100)
        assert ('192.168.5.12', 631) in targets

    @pytest.mark.anyio
    async def test_concurrency_is_bounded(self, config):
        config.scan_concurrency = 8
        active = 0
        peak = 0

        async def probe(host, port, timeout):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.001)
            active -= 1
            return False

        await SubnetProbe(config, prefix='10.0.0', probe=probe).run()

        assert 1 < peak <= 8

    @pytest.mark.anyio
    async def test_probe_error_is_not_found(self, config):
        async def probe(host, port, timeout):
            if host.endswith('.5'):
                raise RuntimeError('boom')
            return host.endswith('.6') and port == 9100

        found = await SubnetProbe(config, prefix='10.0.0', probe=probe).run()

        assert [e.key for e in found] == [('10.0.0.6', 9100)]

    @pytest.mark.anyio
    async def test_real_probe_against_loopback(self, config, fake_printer):
        config.scan_range_start, config.scan_range_end = 1, 3
        async with fake_printer() as printer:
            config.candidate_ports = [printer.port]

            found = await SubnetProbe(config, prefix='127.0.0').run()

        assert [e.key for e in found] == [('127.0.0.1', printer.port)]


class TestParseAnnouncement:

    def test_json_announcement_uses_source_address(self):
        data = json.dumps({'type': 'printer', 'ip': '10.9.9.9', 'port': 9101, 'name': 'Kitchen'}).encode()

        endpoint = parse_announcement(data, '192.168.1.40')

        assert endpoint.key == ('192.168.1.40', 9101)
        assert endpoint.name == 'Kitchen'
        assert endpoint.origin == Origin.BROADCAST
        assert endpoint.confidence == 'confirmed'

    def test_json_announcement_default_port(self):
        endpoint = parse_announcement(b'{"type": "printer"}', '192.168.1.40')

        assert endpoint.port == 9100
        assert endpoint.name == 'Printer-192.168.1.40'

    @pytest.mark.parametrize("text", [b'ESC/POS READY', b'THERMAL PRINTER v2'])
    def test_text_marker_is_low_confidence(self, text):
        endpoint = parse_announcement(text, '192.168.1.41')

        assert endpoint.key == ('192.168.1.41', 9100)
        assert endpoint.confidence == 'low'

    @pytest.mark.parametrize("data", [
        b'{"type": "router"}',
        b'{"type": "printer", "port": "abc"}',
        b'{"type": "printer", "port": 70000}',
        b'["PRINTER"]',
        b'hello',
        b'',
    ])
    def test_ignored_replies(self, data):
        assert parse_announcement(data, '192.168.1.42') is None


class TestBroadcastProbe:

    @pytest.mark.anyio
    async def test_collects_replies_within_window(self, config):
        loop = asyncio.get_running_loop()
        tokens_seen = []

        class Responder(asyncio.DatagramProtocol):
            def connection_made(self, transport):
                self.transport = transport

            def datagram_received(self, data, addr):
                tokens_seen.append(data)
                self.transport.sendto(b'{"type": "printer", "port": 9100, "name": "Bar"}', addr)

        responder, _ = await loop.create_datagram_endpoint(Responder, local_addr=('127.0.0.1', 0))
        port = responder.get_extra_info('sockname')[1]
        config.broadcast_address = '127.0.0.1'
        try:
            found = await BroadcastProbe(config, tokens=[b'PRINTER_DISCOVERY'], ports=[port]).run()
        finally:
            responder.close()

        assert tokens_seen == [b'PRINTER_DISCOVERY']
        assert [(e.key, e.name, e.origin) for e in found] == [(('127.0.0.1', 9100), 'Bar', Origin.BROADCAST)]

    @pytest.mark.anyio
    async def test_socket_unavailable(self, config):
        loop = asyncio.get_running_loop()

        with patch.object(loop, 'create_datagram_endpoint', side_effect=OSError('denied')):
            assert await BroadcastProbe(config).run() == []


class TestStaticProbe:

    @pytest.mark.anyio
    async def test_tries_candidates_in_order(self, config):
        calls = []

        async def probe(host, port, timeout):
            calls.append((host, port, timeout))
            return host == '192.168.1.100'

        candidates = [('192.168.1.100', 9100), ('192.168.0.100', 9100), ('192.168.1.100', 9101)]
        found = await StaticProbe(config, candidates=candidates, probe=probe).run()

        assert [c[:2] for c in calls] == candidates
        assert all(c[2] == config.static_timeout / 1000 for c in calls)
        assert [e.key for e in found] == [('192.168.1.100', 9100), ('192.168.1.100', 9101)]
        assert all(e.origin == Origin.STATIC for e in found)


class TestDiscoveryEngine:

    @pytest.mark.anyio
    async def test_merges_and_deduplicates_first_origin_wins(self, config):
        scanned = [Endpoint('10.0.0.5', 9100, origin=Origin.SCAN)]
        announced = [
            Endpoint('10.0.0.5', 9100, name='Kitchen', origin=Origin.BROADCAST),
            Endpoint('10.0.0.6', 9100, origin=Origin.BROADCAST),
        ]
        static = [Endpoint('10.0.0.6', 9100, origin=Origin.STATIC), Endpoint('10.0.0.5', 9101, origin=Origin.STATIC)]

        engine = DiscoveryEngine(config, strategies=[
            FakeStrategy(scanned), FakeStrategy(announced), FakeStrategy(static)
        ])
        printers = await engine.discover()

        assert [(p.key, p.origin) for p in printers] == [
            (('10.0.0.5', 9100), Origin.SCAN),
            (('10.0.0.6', 9100), Origin.BROADCAST),
            (('10.0.0.5', 9101), Origin.STATIC),
        ]
        assert len({p.key for p in printers}) == len(printers)

    @pytest.mark.anyio
    async def test_failing_strategy_contributes_nothing(self, config):
        engine = DiscoveryEngine(config, strategies=[
            FakeStrategy(error=OSError('no route')),
            FakeStrategy([Endpoint('10.0.0.7', 9100, origin=Origin.STATIC)]),
        ])

        printers = await engine.discover()

        assert [p.key for p in printers] == [('10.0.0.7', 9100)]

    @pytest.mark.anyio
    async def test_no_state_between_calls(self, config):
        strategy = FakeStrategy([Endpoint('10.0.0.8', 9100)])
        engine = DiscoveryEngine(config, strategies=[strategy])

        assert len(await engine.discover()) == 1
        strategy.endpoints = []
        assert await engine.discover() == []

    def test_default_strategies(self, config):
        engine = DiscoveryEngine(config)

        assert [type(s) for s in engine.strategies] == [SubnetProbe, BroadcastProbe, StaticProbe]


class TestNetworkHelpers:

    def test_subnet_prefix(self):
        assert subnet_prefix('192.168.1.23') == '192.168.1'

    def test_interfaces_skip_loopback_and_ipv6(self):
        Addr = namedtuple('Addr', 'family address netmask')
        fake = {
            'lo': [Addr(socket.AF_INET, '127.0.0.1', '255.0.0.0')],
            'wlan0': [
                Addr(socket.AF_INET6, 'fe80::1', None),
                Addr(socket.AF_INET, '192.168.1.23', '255.255.255.0'),
            ],
        }

        with patch('lan_print_agent.discovery.psutil.net_if_addrs', return_value=fake):
            interfaces = ipv4_interfaces()
            primary = get_primary_ip()

        assert interfaces == {'wlan0': [{'address': '192.168.1.23', 'netmask': '255.255.255.0', 'family': 'IPv4'}]}
        assert primary == '192.168.1.23'

    def test_primary_ip_without_interfaces(self):
        with patch('lan_print_agent.discovery.psutil.net_if_addrs', return_value={}):
            assert get_primary_ip() == '127.0.0.1'
