"""
Exceptions
==========

Exception Hierarchy:
    PrintAgentError (base)
    ├── ConfigurationError   - Invalid parameter, detected before any I/O
    ├── EncodingFailure      - Payload cannot be represented as control codes
    └── DeliveryError        - Print payload could not be delivered
        ├── ConnectionFailure - Connect refused, unreachable or timed out
        └── ProtocolFailure   - Connected, but the remote end signalled failure

Discovery never raises for unreachable targets, those are simply not found.
Dispatch raises, because the caller asked for one specific target.
"""

from typing import Optional, Dict, Any


class PrintAgentError(Exception):
    """Base exception for all print agent errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Error body used by the front doors."""
        data = {'success': False, 'error': self.message, 'kind': type(self).__name__}
        if self.details:
            data['details'] = self.details
        return data


class ConfigurationError(PrintAgentError):
    """
    Unrecognized or missing parameter (bad transport name, missing payload).

    Raised synchronously before any network activity and never retried.
    """


class EncodingFailure(PrintAgentError):
    """The payload is not text and cannot be turned into control codes."""


class DeliveryError(PrintAgentError):
    """Base class for failures while delivering a payload to a printer."""

    def __init__(
        self,
        message: str,
        transport: Optional[str] = None,
        endpoint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        error_details = details or {}
        if transport:
            error_details['transport'] = transport
        if endpoint:
            error_details['endpoint'] = endpoint
        super().__init__(message, error_details)
        self.transport = transport
        self.endpoint = endpoint


class ConnectionFailure(DeliveryError):
    """
    Connection could not be established or timed out.

    Eligible for a retry by the caller; the agent itself never retries.
    """


class ProtocolFailure(DeliveryError):
    """
    The connection succeeded but the printer side reported failure.

    Carries the HTTP status code for the request transport, or the error
    text of the reply envelope for the message transport.
    """

    def __init__(
        self,
        message: str,
        transport: Optional[str] = None,
        endpoint: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        error_details = details or {}
        if status_code is not None:
            error_details['status_code'] = status_code
        super().__init__(message, transport, endpoint, error_details)
        self.status_code = status_code
