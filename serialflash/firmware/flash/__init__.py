"""Flash session orchestration."""

from serialflash.firmware.flash.progress import (
    FlashProgressMiddleware,
    diagnostic_tail,
    estimate_percent,
)
from serialflash.firmware.flash.service import (
    FlashOrchestrator,
    create_flash_orchestrator,
)
from serialflash.firmware.flash.session import FlashSession


__all__ = [
    "FlashOrchestrator",
    "FlashProgressMiddleware",
    "FlashSession",
    "create_flash_orchestrator",
    "diagnostic_tail",
    "estimate_percent",
]
