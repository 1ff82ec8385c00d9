"""Serial port adapter backed by pyserial."""

import time

import serial
from serial.tools import list_ports

from serialflash.core.errors import DetectionError
from serialflash.core.structlog_logger import get_struct_logger


logger = get_struct_logger(__name__)


class SerialPortAdapter:
    """pyserial implementation of SerialPortAdapterProtocol."""

    def list_ports(self) -> list[str]:
        try:
            ports = [p.device for p in list_ports.comports()]
        except (OSError, serial.SerialException) as e:
            raise DetectionError(f"Failed to enumerate serial ports: {e}") from e
        logger.debug("serial_ports_listed", ports=ports)
        return ports

    def probe(self, port: str, baud: int, hold: float) -> None:
        # Serial() opens immediately when a port is given; the context
        # manager guarantees the close.
        with serial.Serial(port=port, baudrate=baud, timeout=0):
            if hold > 0:
                time.sleep(hold)


def create_serial_adapter() -> SerialPortAdapter:
    """Create the default pyserial-backed adapter."""
    return SerialPortAdapter()
