"""Protocol definitions for serialflash adapters and interfaces.

These protocols use Python's typing.Protocol system with the
@runtime_checkable decorator to enable both static type checking and
runtime isinstance() checks.
"""

from .reporter_protocol import ProgressReporterProtocol
from .serial_adapter_protocol import SerialPortAdapterProtocol


__all__ = [
    "ProgressReporterProtocol",
    "SerialPortAdapterProtocol",
]
