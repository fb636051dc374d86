"""
LAN Print Agent
===============

Local network agent for thermal receipt printers.

- Discovers printers on the LAN (subnet scan, UDP broadcast, common addresses)
- Prints over raw TCP, websocket or HTTP
- Converts receipt text to ESC/POS with Turkish code page support

Usage:
    python -m lan_print_agent

API Endpoints:
    GET  /health                 - Health check
    GET  /api/discover-printers  - Discover printers
    POST /api/print              - Print a payload
    POST /api/test-print         - Print the test receipt
    GET  /api/config             - Get configuration
    POST /api/config             - Update configuration
    GET  /api/network            - Network interfaces
"""

__version__ = '2.0.0'
