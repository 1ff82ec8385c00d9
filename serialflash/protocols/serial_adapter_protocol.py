"""Protocol for serial port access used by device detection."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class SerialPortAdapterProtocol(Protocol):
    """Enumerate and probe serial ports."""

    def list_ports(self) -> list[str]:
        """Return the platform's available port identifiers, in any order.

        Raises:
            DetectionError: If the platform port list cannot be read
        """
        ...

    def probe(self, port: str, baud: int, hold: float) -> None:
        """Open ``port`` at ``baud``, keep it open for ``hold`` seconds, close it.

        Raises:
            serial.SerialException or OSError: If the port cannot be opened
        """
        ...
