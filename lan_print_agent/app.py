"""
LAN Print Agent - HTTP Front Door
================================

Flask API in front of the discovery engine and the dispatch router.

Run: python -m lan_print_agent
"""

import asyncio
import os
import platform
import socket
import sys
import time
from datetime import datetime, timezone
from typing import Optional

import psutil
from flask import Flask, request, jsonify
from flask_cors import CORS

from . import __version__
from .config import AgentConfig
from .discovery import DiscoveryEngine, ipv4_interfaces, get_primary_ip
from .encoder import build_test_receipt
from .exceptions import PrintAgentError, ConfigurationError, EncodingFailure, DeliveryError
from .logging_config import get_logger
from .models import PrintJob, Transport, PayloadFormat, Endpoint
from .router import Dispatcher
from .supervisor import Supervisor

logger = get_logger(__name__)

# =============================================================================
# Application Setup
# =============================================================================

app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = 10 * 1024 * 1024
CORS(app)

_config: AgentConfig = AgentConfig()
_supervisor: Optional[Supervisor] = None
_started_at = time.monotonic()


def configure(config: AgentConfig, supervisor: Optional[Supervisor] = None):
    """Install the configuration (and supervisor) the routes work with."""
    global _config, _supervisor
    _config = config
    _supervisor = supervisor


def _run(coro):
    """Drive a core coroutine to completion from a request handler."""
    return asyncio.run(coro)


@app.before_request
def log_request():
    logger.info("%s %s", request.method, request.full_path.rstrip('?'))


@app.errorhandler(PrintAgentError)
def handle_agent_error(error: PrintAgentError):
    if isinstance(error, (ConfigurationError, EncodingFailure)):
        status = 400
    elif isinstance(error, DeliveryError):
        status = 502
    else:
        status = 500
    return jsonify(error.to_dict()), status


# =============================================================================
# Health & Info Endpoints
# =============================================================================

@app.route('/health', methods=['GET'])
def health():
    """Health check with system info."""
    memory = psutil.Process(os.getpid()).memory_info()
    return jsonify({
        'status': 'healthy',
        'version': __version__,
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'uptime': round(time.monotonic() - _started_at, 1),
        'memory': {'rss': memory.rss, 'vms': memory.vms},
        'hostname': socket.gethostname(),
        'platform': platform.system(),
        'arch': platform.machine(),
        'python': sys.version.split()[0],
        'serverConnection': (
            'connected' if _supervisor and _supervisor.health.server_connected else 'disconnected'
        ),
        'restartCount': _supervisor.restarts.count if _supervisor else 0,
    })


@app.route('/api/network', methods=['GET'])
def network_info():
    """Active IPv4 interfaces and the address the subnet scan uses."""
    return jsonify({
        'hostname': socket.gethostname(),
        'platform': platform.system(),
        'interfaces': ipv4_interfaces(),
        'primaryIP': get_primary_ip(),
    })


# =============================================================================
# Discovery & Printing
# =============================================================================

@app.route('/api/discover-printers', methods=['GET'])
def discover_printers():
    """Run a discovery session."""
    logger.info("Starting printer discovery...")
    printers = _run(DiscoveryEngine(_config).discover())
    return jsonify({
        'success': True,
        'printers': [p.to_dict() for p in printers],
        'count': len(printers),
    })


@app.route('/api/print', methods=['POST'])
def print_job():
    """
    Print a payload.

    Body: {data, printer?: {host, port}, protocol: raw|websocket|http, format: escpos|raw}
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'success': False, 'error': 'Request body required'}), 400

    job = PrintJob.from_request(data)
    logger.info("Print request: %s/%s to %s", job.transport.value, job.format.value,
                job.endpoint.name if job.endpoint else 'default')

    result = _run(Dispatcher(_config).dispatch(job))
    return jsonify(result.to_dict())


@app.route('/api/test-print', methods=['POST'])
def test_print():
    """Print the built-in test receipt over raw TCP."""
    data = request.get_json(silent=True) or {}
    printer = data.get('printer')

    job = PrintJob(
        payload=build_test_receipt(),
        transport=Transport.STREAM,
        format=PayloadFormat.CONTROL_CODE,
        endpoint=Endpoint.from_dict(printer) if isinstance(printer, dict) and printer.get('host') else None,
    )
    result = _run(Dispatcher(_config).dispatch(job))
    return jsonify(result.to_dict())


# =============================================================================
# Configuration
# =============================================================================

@app.route('/api/config', methods=['GET'])
def get_config():
    return jsonify(_config.to_dict())


@app.route('/api/config', methods=['POST'])
def update_config():
    """Update and persist configuration."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'success': False, 'error': 'Request body required'}), 400

    changed = _config.update(data)
    try:
        _config.save()
    except OSError as e:
        logger.error("Failed to save configuration: %s", e)
        return jsonify({'success': False, 'error': str(e)}), 500

    return jsonify({'success': True, 'changed': changed, 'config': _config.to_dict()})
