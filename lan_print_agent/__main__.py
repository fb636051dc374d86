"""
LAN Print Agent - Service Entry Point

Run: python -m lan_print_agent
"""

import logging

from . import __version__
from .app import app, configure
from .config import AgentConfig, HOST, DEBUG, DATA_DIR, LOG_LEVEL
from .discovery import get_primary_ip
from .logging_config import setup_logging
from .supervisor import Supervisor
from .ws_server import MessageServer


def main():
    """Run the agent under the supervisor."""
    setup_logging(log_level=getattr(logging, LOG_LEVEL, logging.INFO),
                  enable_file_logging=not DEBUG)
    config = AgentConfig.load()
    ws_server = MessageServer(config)

    def serve():
        ws_server.start_in_thread(HOST, config.ws_port)
        app.run(host=HOST, port=config.port, debug=DEBUG, use_reloader=False)

    supervisor = Supervisor(config, serve, stop=ws_server.stop)
    configure(config, supervisor)

    local_ip = get_primary_ip()
    print("=" * 60)
    print("  LAN Print Agent")
    print("=" * 60)
    print(f"  Version: {__version__}")
    print(f"  HTTP: http://{local_ip}:{config.port}")
    print(f"  WebSocket: ws://{local_ip}:{config.ws_port}")
    print(f"  Data: {DATA_DIR}")
    print(f"  Default printer: {config.default_printer_host}")
    print("=" * 60)
    print("  API Endpoints:")
    print("    GET  /health                          - Health check")
    print("    GET  /api/discover-printers           - Discover printers")
    print("    POST /api/print                       - Print payload")
    print("    POST /api/test-print                  - Print test receipt")
    print("    GET  /api/config                      - Get configuration")
    print("    POST /api/config                      - Update configuration")
    print("    GET  /api/network                     - Network info")
    print("=" * 60)

    supervisor.exit()


if __name__ == '__main__':
    main()
