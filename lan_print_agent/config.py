"""
LAN Print Agent Configuration
"""

import json
import os
from dataclasses import dataclass, field, asdict, fields
from pathlib import Path
from typing import Dict, Any, List, Optional

from .exceptions import ConfigurationError
from .logging_config import get_logger

logger = get_logger(__name__)

# =============================================================================
# Server Configuration
# =============================================================================

PORT = int(os.environ.get('PRINT_AGENT_PORT', 3001))
WS_PORT = int(os.environ.get('PRINT_AGENT_WS_PORT', 3002))
HOST = os.environ.get('PRINT_AGENT_HOST', '0.0.0.0')
DEBUG = os.environ.get('PRINT_AGENT_DEBUG', 'false').lower() == 'true'
LOG_LEVEL = os.environ.get('PRINT_AGENT_LOG_LEVEL', 'INFO').upper()

# Upstream restaurant server, polled for reachability
SERVER_URL = os.environ.get('SERVER_URL', 'http://localhost:5000')

# =============================================================================
# Printer Defaults
# =============================================================================

DEFAULT_PRINTER_HOST = os.environ.get('PRINTER_ADDRESS', '192.168.2.38:9100')
RAW_PORT = 9100
MESSAGE_PORT = 8080
REQUEST_PORT = 8008

# Thermal and common network printer ports probed by the subnet scan
CANDIDATE_PORTS = [9100, 9101, 9102, 8080, 8008, 631]

# Historically common printer addresses, tried one by one
STATIC_CANDIDATES = [
    ('192.168.1.100', 9100),
    ('192.168.1.200', 9100),
    ('192.168.0.100', 9100),
    ('192.168.178.54', 9100),
    ('192.168.4.1', 9100),
    ('10.0.0.1', 9100),
    ('10.0.0.100', 9100),
    ('172.16.1.1', 9100),
]

# Broadcast discovery
DISCOVERY_TOKENS = [b'HILFEX_PRINTER_DISCOVERY', b'ESC_POS_DISCOVERY', b'PRINTER_DISCOVERY']
DISCOVERY_PORTS = [8255, 9100]
BROADCAST_ADDRESS = '255.255.255.255'

# =============================================================================
# Storage Configuration
# =============================================================================

DATA_DIR = os.environ.get('PRINT_AGENT_DATA_DIR', os.path.expanduser('~/.lan_print_agent'))
CONFIG_FILE = 'config.json'


def default_config_path() -> Path:
    """Path of the persisted configuration file."""
    return Path(DATA_DIR) / CONFIG_FILE


@dataclass
class AgentConfig:
    """
    Runtime configuration of the agent.

    All durations are milliseconds. The core reads these values and never
    writes them back; the HTTP front door persists changes through ``save``.
    """

    # Front doors
    port: int = PORT
    ws_port: int = WS_PORT
    server_url: str = SERVER_URL

    # Dispatch
    default_printer_host: str = DEFAULT_PRINTER_HOST
    printer_discovery_timeout: int = 5000  # connect timeout of every transport
    message_reply_timeout: int = 5000
    message_port: int = MESSAGE_PORT
    request_port: int = REQUEST_PORT

    # Supervision
    max_retries: int = 3
    retry_delay: int = 2000
    health_check_interval: int = 30000
    max_restart_attempts: int = 100

    # Discovery
    scan_range_start: int = 1
    scan_range_end: int = 254
    scan_timeout: int = 1000
    scan_concurrency: int = 128
    broadcast_address: str = BROADCAST_ADDRESS
    broadcast_window: int = 3000
    static_timeout: int = 2000
    candidate_ports: List[int] = field(default_factory=lambda: list(CANDIDATE_PORTS))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    def update(self, data: Dict[str, Any]) -> List[str]:
        """
        Apply known keys from ``data``.

        Args:
            data: Partial configuration (e.g. an API request body)

        Returns:
            Names of the fields that were changed

        Raises:
            ConfigurationError: If a value has the wrong type. Nothing is
                applied in that case.
        """
        known = {f.name for f in fields(self)}
        pending = {}
        for key, value in data.items():
            if key not in known:
                logger.warning("Ignoring unknown config key: %s", key)
                continue

            expected = getattr(self, key)
            if isinstance(expected, list):
                ok = isinstance(value, list) and all(isinstance(v, int) for v in value)
            elif isinstance(expected, int):
                ok = isinstance(value, int) and not isinstance(value, bool)
            else:
                ok = isinstance(value, str)
            if not ok:
                raise ConfigurationError(
                    f'Invalid value for {key}: {value!r}',
                    {'key': key, 'expected': type(expected).__name__}
                )

            pending[key] = value

        for key, value in pending.items():
            setattr(self, key, value)
        return list(pending)

    @property
    def scan_range(self) -> range:
        """Host suffixes probed by the subnet scan (inclusive bounds)."""
        return range(self.scan_range_start, self.scan_range_end + 1)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> 'AgentConfig':
        """
        Load configuration, overlaying the saved file on the defaults.

        A missing or unreadable file is not an error, the defaults are used.
        """
        config = cls()
        path = path or default_config_path()
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError('expected a JSON object')
            config.update(data)
            logger.info("Configuration loaded from %s", path)
        except FileNotFoundError:
            logger.info("Using default configuration")
        except (ValueError, OSError, ConfigurationError) as e:
            logger.warning("Failed to load configuration from %s: %s", path, e)
        return config

    def save(self, path: Optional[Path] = None) -> Path:
        """Write the configuration as JSON and return the path written."""
        path = path or default_config_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info("Configuration saved to %s", path)
        return path
