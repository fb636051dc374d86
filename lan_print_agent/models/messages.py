"""
Message Channel Envelopes
=========================

JSON envelopes exchanged on the agent's websocket front door. Each
``type`` tag maps to one dataclass with an explicit payload; decoding goes
through a single ``match`` in ``decode_message``.

    {"type": "print", "payload": {"data": "...", "printer": {...}, "protocol": "raw"}}
    {"type": "print_result", "data": {"success": true, ...}}
    {"type": "discover"}
    {"type": "printers_discovered", "data": [{"host": "...", "port": 9100, ...}]}
    {"type": "ping"}
    {"type": "pong", "timestamp": 1760860000000}
    {"type": "status", "data": {"connected": true, "printers": ["..."]}}
    {"type": "error", "message": "..."}
"""

import json
import time
from dataclasses import dataclass, field
from typing import Dict, Any, List, Union

from ..exceptions import ConfigurationError


@dataclass
class Print:
    request: Dict[str, Any]

    def to_wire(self) -> Dict[str, Any]:
        return {'type': 'print', 'payload': self.request}


@dataclass
class PrintResult:
    result: Dict[str, Any]

    def to_wire(self) -> Dict[str, Any]:
        return {'type': 'print_result', 'data': self.result}


@dataclass
class Discover:
    def to_wire(self) -> Dict[str, Any]:
        return {'type': 'discover'}


@dataclass
class DiscoverResult:
    printers: List[Dict[str, Any]]

    def to_wire(self) -> Dict[str, Any]:
        return {'type': 'printers_discovered', 'data': self.printers}


@dataclass
class Ping:
    def to_wire(self) -> Dict[str, Any]:
        return {'type': 'ping'}


@dataclass
class Pong:
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))

    def to_wire(self) -> Dict[str, Any]:
        return {'type': 'pong', 'timestamp': self.timestamp}


@dataclass
class Status:
    connected: bool = True
    printers: List[str] = field(default_factory=list)

    def to_wire(self) -> Dict[str, Any]:
        return {'type': 'status', 'data': {'connected': self.connected, 'printers': self.printers}}


@dataclass
class Error:
    message: str

    def to_wire(self) -> Dict[str, Any]:
        return {'type': 'error', 'message': self.message}


Message = Union[Print, PrintResult, Discover, DiscoverResult, Ping, Pong, Status, Error]


def encode_message(message: Message) -> str:
    """Serialize an envelope to a JSON text frame."""
    return json.dumps(message.to_wire())


def decode_message(raw: Union[str, bytes]) -> Message:
    """
    Parse a JSON text frame into its envelope.

    Raises:
        ConfigurationError: Invalid JSON, unknown tag, or a payload that
            does not have the shape its tag requires
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f'Invalid JSON message: {e}')

    match data:
        case {'type': 'print', 'payload': dict() as request}:
            return Print(request)
        case {'type': 'print_result', 'data': dict() as result}:
            return PrintResult(result)
        case {'type': 'discover'}:
            return Discover()
        case {'type': 'printers_discovered', 'data': list() as printers}:
            return DiscoverResult(printers)
        case {'type': 'ping'}:
            return Ping()
        case {'type': 'pong', 'timestamp': int() as timestamp}:
            return Pong(timestamp)
        case {'type': 'status', 'data': {'connected': bool() as connected, 'printers': list() as printers}}:
            return Status(connected, printers)
        case {'type': 'error', 'message': str() as message}:
            return Error(message)
        case {'type': str() as tag}:
            raise ConfigurationError(f'Unknown or malformed message type: {tag}')
        case _:
            raise ConfigurationError('Message must be a JSON object with a type')
