"""
Printer Test Utility
====================

Interactive menu for checking printers from the agent host without going
through the HTTP API.

Run: lan-print-agent-test  (or python main.py test)
"""

import asyncio
import logging
from typing import Callable, List, Optional

from .config import AgentConfig, RAW_PORT
from .discovery import DiscoveryEngine, ipv4_interfaces, get_primary_ip, subnet_prefix
from .encoder import build_test_receipt
from .exceptions import PrintAgentError
from .logging_config import setup_logging
from .models import Endpoint, PrintJob, Transport, PayloadFormat
from .router import Dispatcher
from .transports import probe_connection

MENU = [
    'Discover Printers',
    'Test Print (Manual IP)',
    'Connection Test',
    'Print Test Receipt',
    'Show Network Info',
    'Exit',
]


class PrinterTester:
    """Menu driven printer checks."""

    def __init__(self, config: Optional[AgentConfig] = None,
                 prompt: Callable[[str], str] = input,
                 out: Callable[[str], None] = print):
        self.config = config or AgentConfig.load()
        self.prompt = prompt
        self.out = out
        self.discovered: List[Endpoint] = []

    def ask(self, question: str, default: str = '') -> str:
        suffix = f' [{default}]' if default else ''
        return self.prompt(f'{question}{suffix}: ').strip() or default

    def confirm(self, question: str, default: bool = True) -> bool:
        answer = self.ask(f"{question} ({'Y/n' if default else 'y/N'})").lower()
        if not answer:
            return default
        return answer in ('y', 'yes')

    def run(self):
        self.out('\nPrinter Test Utility\n')
        actions = [self.discover, self.manual_print_test, self.connection_test,
                   self.print_test_receipt, self.show_network_info]
        while True:
            for number, label in enumerate(MENU, 1):
                self.out(f'{number}. {label}')
            choice = self.ask(f'Enter choice (1-{len(MENU)})')
            if choice == str(len(MENU)):
                self.out('Goodbye!')
                return
            if choice.isdigit() and 1 <= int(choice) < len(MENU):
                actions[int(choice) - 1]()
            else:
                self.out('Invalid choice')
            self.out('')

    def discover(self):
        self.out('Discovering printers...')
        self.discovered = asyncio.run(DiscoveryEngine(self.config).discover())
        if not self.discovered:
            self.out('No printers discovered')
            self.out('Try: check the printer is on and connected, or use the manual IP test')
            return
        self.out(f'Total found: {len(self.discovered)} unique printer(s)')
        for number, printer in enumerate(self.discovered, 1):
            self.out(f'{number}. {printer.name} - {printer.describe()} ({printer.origin.value})')

    def _print(self, endpoint: Endpoint) -> bool:
        job = PrintJob(payload=build_test_receipt(), transport=Transport.STREAM,
                       format=PayloadFormat.CONTROL_CODE, endpoint=endpoint)
        try:
            result = asyncio.run(Dispatcher(self.config).dispatch(job))
        except PrintAgentError as e:
            self.out(f'Print failed: {e.message}')
            return False
        self.out(result.message)
        return True

    def manual_print_test(self):
        try:
            endpoint = Endpoint.from_dict({
                'host': self.ask('Enter printer IP address', '192.168.1.100'),
                'port': self.ask('Enter printer port', str(RAW_PORT)),
            })
        except PrintAgentError as e:
            self.out(e.message)
            return

        self.out(f'Testing connection to {endpoint.describe()}...')
        if not asyncio.run(probe_connection(endpoint.host, endpoint.port, 5)):
            self.out('Connection failed - printer not reachable')
            return
        self.out('Connection successful')
        if self.confirm('Send test print?'):
            self._print(endpoint)

    def _select(self) -> Optional[Endpoint]:
        if not self.discovered:
            self.out('No discovered printers. Running discovery first...')
            self.discover()
            if not self.discovered:
                return None
        for number, printer in enumerate(self.discovered, 1):
            self.out(f'{number}. {printer.name} - {printer.describe()}')
        choice = self.ask('Enter printer number')
        if not choice.isdigit() or not 1 <= int(choice) <= len(self.discovered):
            self.out('Invalid selection')
            return None
        return self.discovered[int(choice) - 1]

    def connection_test(self):
        printer = self._select()
        if printer is None:
            return
        ok = asyncio.run(probe_connection(printer.host, printer.port, 3))
        self.out(f"Basic TCP: {'SUCCESS' if ok else 'FAILED'}")

    def print_test_receipt(self):
        printer = self._select()
        if printer is not None:
            self._print(printer)

    def show_network_info(self):
        primary = get_primary_ip()
        self.out(f'Local IP: {primary}')
        self.out(f'Subnet: {subnet_prefix(primary)}.x')
        for name, addresses in ipv4_interfaces().items():
            for address in addresses:
                self.out(f"  {name}: {address['address']} / {address['netmask']}")


def main():
    setup_logging(log_level=logging.WARNING)
    try:
        PrinterTester().run()
    except (KeyboardInterrupt, EOFError):
        print('\nGoodbye!')


if __name__ == '__main__':
    main()
