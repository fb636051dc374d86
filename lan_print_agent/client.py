"""
LAN Print Agent Client
======================

Python SDK for talking to a running agent.

Usage:
    from lan_print_agent.client import AgentClient

    client = AgentClient('http://192.168.1.50:3001')

    # Find printers
    printers = client.discover_printers()

    # Print a receipt to the first one
    result = client.print('ISTANBUL RESTAURANT\\nTOPLAM: 10', printer=printers[0])
"""

import requests
from typing import Dict, Any, Optional, List


class AgentClient:
    """Client for the agent HTTP API."""

    def __init__(self, base_url: str = 'http://localhost:3001', timeout: int = 30):
        """
        Initialize client.

        Args:
            base_url: Base URL of the agent
            timeout: Request timeout in seconds (discovery takes a few)
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    def _request(self, method: str, endpoint: str, data: Dict = None) -> Dict[str, Any]:
        """Make API request."""
        url = f'{self.base_url}{endpoint}'

        try:
            if method == 'GET':
                response = requests.get(url, timeout=self.timeout)
            elif method == 'POST':
                response = requests.post(url, json=data, timeout=self.timeout)
            else:
                raise ValueError(f'Unknown method: {method}')

            return response.json()

        except requests.exceptions.Timeout:
            return {'success': False, 'error': 'Request timeout'}
        except requests.exceptions.ConnectionError:
            return {'success': False, 'error': f'Cannot connect to {self.base_url}'}
        except ValueError as e:
            return {'success': False, 'error': str(e)}

    # =========================================================================
    # Health
    # =========================================================================

    def health(self) -> Dict[str, Any]:
        """Check agent health."""
        return self._request('GET', '/health')

    def is_online(self) -> bool:
        """Check if the agent is online."""
        return self.health().get('status') == 'healthy'

    def network_info(self) -> Dict[str, Any]:
        """Interfaces and primary IP of the agent host."""
        return self._request('GET', '/api/network')

    # =========================================================================
    # Printers
    # =========================================================================

    def discover_printers(self) -> List[Dict[str, Any]]:
        """Run discovery on the agent."""
        result = self._request('GET', '/api/discover-printers')
        return result.get('printers', [])

    def print(self, data: str, printer: Optional[Dict[str, Any]] = None,
              protocol: str = 'raw', format: str = 'escpos') -> Dict[str, Any]:
        """
        Print text.

        Args:
            data: Receipt text (or raw printer data with format='raw')
            printer: Target ``{host, port}``; the agent default when omitted
            protocol: raw, websocket or http
            format: escpos or raw
        """
        body = {'data': data, 'protocol': protocol, 'format': format}
        if printer:
            body['printer'] = printer
        return self._request('POST', '/api/print', body)

    def test_print(self, printer: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Print the agent's built-in test receipt."""
        return self._request('POST', '/api/test-print', {'printer': printer} if printer else {})

    # =========================================================================
    # Configuration
    # =========================================================================

    def get_config(self) -> Dict[str, Any]:
        return self._request('GET', '/api/config')

    def update_config(self, **changes) -> Dict[str, Any]:
        """Update and persist agent configuration."""
        return self._request('POST', '/api/config', changes)
