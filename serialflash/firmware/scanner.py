"""Serial port scanning to find a connected board."""

import logging
import time
from collections.abc import Callable

from serialflash.config.models import DetectionConfig
from serialflash.core.structlog_logger import get_struct_logger
from serialflash.firmware.models import DetectedDevice, DetectionResult, NotFound
from serialflash.protocols.reporter_protocol import ProgressReporterProtocol
from serialflash.protocols.serial_adapter_protocol import SerialPortAdapterProtocol
from serialflash.reporting.events import Severity
from serialflash.reporting.reporters import NullReporter


logger = get_struct_logger(__name__)

NOT_FOUND_GUIDANCE = (
    "Please connect your ESP32 board via USB\nand restart the application."
)


class PortScanner:
    """Find the first serial port that accepts a connection.

    Ports are probed one at a time and scanning stops at the first port
    that opens, so no other attached board is touched. The port is closed
    again before ``detect`` returns.
    """

    def __init__(
        self,
        serial_adapter: SerialPortAdapterProtocol,
        config: DetectionConfig | None = None,
        reporter: ProgressReporterProtocol | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.serial_adapter = serial_adapter
        self.config = config or DetectionConfig()
        self.reporter = reporter or NullReporter()
        self._sleep = sleep

    def detect(self) -> DetectionResult:
        """Probe available ports and return the first one that opens."""
        if self.config.detect_delay > 0:
            self._sleep(self.config.detect_delay)

        self.reporter.on_status("Scanning for ESP32 device...", Severity.INFO)

        try:
            ports = self.serial_adapter.list_ports()
        except Exception as e:
            exc_info = logger.isEnabledFor(logging.DEBUG)
            logger.error("port_enumeration_failed", error=str(e), exc_info=exc_info)
            ports = []

        logger.info("port_scan_started", port_count=len(ports))

        for port in ports:
            if self._probe(port):
                device = DetectedDevice(port=port, probe_baud=self.config.probe_baud)
                logger.info("device_detected", port=port)
                self.reporter.on_status(f"ESP32 detected on {port}", Severity.INFO)
                self.reporter.on_detail(
                    f"Port: {port}\nBaud Rate: {self.config.probe_baud}\nReady to flash"
                )
                return device

        logger.warning("no_device_detected", ports_tried=ports)
        self.reporter.on_status(
            "No ESP32 found - Connect device and restart", Severity.ERROR
        )
        self.reporter.on_detail(NOT_FOUND_GUIDANCE)
        return NotFound(ports_tried=tuple(ports))

    def _probe(self, port: str) -> bool:
        try:
            self.serial_adapter.probe(
                port, self.config.probe_baud, self.config.probe_hold
            )
        except Exception as e:
            # Any open failure skips the port without retrying it
            logger.debug(
                "port_probe_failed",
                port=port,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False
        return True


def create_port_scanner(
    serial_adapter: SerialPortAdapterProtocol | None = None,
    config: DetectionConfig | None = None,
    reporter: ProgressReporterProtocol | None = None,
) -> PortScanner:
    """Create a PortScanner, defaulting to the pyserial adapter."""
    if serial_adapter is None:
        from serialflash.adapters.serial_adapter import create_serial_adapter

        serial_adapter = create_serial_adapter()
    return PortScanner(serial_adapter=serial_adapter, config=config, reporter=reporter)
