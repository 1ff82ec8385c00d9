"""serialflash - ESP32 serial port detection and esptool flashing."""

from importlib.metadata import distribution

from .controller import FlasherController, create_flasher_controller
from .firmware.flash.service import FlashOrchestrator, create_flash_orchestrator
from .firmware.models import DetectedDevice, FlashOutcome, NotFound
from .firmware.scanner import PortScanner, create_port_scanner


__version__ = distribution(__package__ or "serialflash").version

__all__ = [
    "DetectedDevice",
    "FlashOrchestrator",
    "FlashOutcome",
    "FlasherController",
    "NotFound",
    "PortScanner",
    "__version__",
    "create_flash_orchestrator",
    "create_flasher_controller",
    "create_port_scanner",
]
