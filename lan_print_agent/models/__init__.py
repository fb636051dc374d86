"""
LAN Print Agent Models
"""

from .endpoint import Endpoint, Origin
from .job import PrintJob, DispatchResult, Transport, PayloadFormat

__all__ = ['Endpoint', 'Origin', 'PrintJob', 'DispatchResult', 'Transport', 'PayloadFormat']
