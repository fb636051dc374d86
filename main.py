#!/usr/bin/env python
"""
LAN Print Agent - Standalone Entry Point

Run directly:
    python main.py

Or with environment variables:
    PRINT_AGENT_PORT=3001 PRINTER_ADDRESS=192.168.1.50:9100 python main.py

Interactive printer test utility:
    python main.py test
"""

import os
import sys

# Ensure package is importable when running directly
if __name__ == '__main__':
    parent_dir = os.path.dirname(os.path.abspath(__file__))
    if parent_dir not in sys.path:
        sys.path.insert(0, parent_dir)

from lan_print_agent.__main__ import main
from lan_print_agent.cli import main as test_utility


if __name__ == '__main__':
    if sys.argv[1:2] == ['test']:
        test_utility()
    else:
        main()
