"""Device detection and firmware flashing."""

from serialflash.firmware.flash import FlashOrchestrator, create_flash_orchestrator
from serialflash.firmware.models import (
    DetectedDevice,
    DetectionResult,
    FailureKind,
    FirmwareArtifactSet,
    FlashFailure,
    FlashOutcome,
    FlashState,
    NotFound,
)
from serialflash.firmware.scanner import PortScanner, create_port_scanner


__all__ = [
    "DetectedDevice",
    "DetectionResult",
    "FailureKind",
    "FirmwareArtifactSet",
    "FlashFailure",
    "FlashOrchestrator",
    "FlashOutcome",
    "FlashState",
    "NotFound",
    "PortScanner",
    "create_flash_orchestrator",
    "create_port_scanner",
]
