"""Firmware artifact resolution."""

from pathlib import Path

from serialflash.core.errors import MissingArtifactError
from serialflash.core.structlog_logger import get_struct_logger
from serialflash.firmware.models import FirmwareArtifactSet, slot_for
from serialflash.utils.xdg import get_executable_dir


logger = get_struct_logger(__name__)

APPLICATION_IMAGE = "firmware.bin"
BOOTLOADER_IMAGE = "bootloader.bin"
PARTITIONS_IMAGE = "partitions.bin"

# PlatformIO build output of the controller firmware, relative to the
# directory holding the flasher executable
DEFAULT_ARTIFACT_LAYOUT = Path("..", "esp32-controller", ".pio", "build", "esp32dev")


def default_firmware_dir(anchor: Path | None = None) -> Path:
    """Build directory resolved against ``anchor`` (the executable's directory)."""
    base = anchor if anchor is not None else get_executable_dir()
    return (base / DEFAULT_ARTIFACT_LAYOUT).resolve()


def resolve_artifacts(firmware_dir: Path) -> FirmwareArtifactSet:
    """Locate the images in ``firmware_dir``.

    Raises:
        MissingArtifactError: If the application image does not exist
    """
    application = (firmware_dir / APPLICATION_IMAGE).resolve()
    if not application.is_file():
        raise MissingArtifactError(application)

    artifacts = FirmwareArtifactSet(
        application=application,
        bootloader=slot_for((firmware_dir / BOOTLOADER_IMAGE).resolve()),
        partitions=slot_for((firmware_dir / PARTITIONS_IMAGE).resolve()),
    )
    logger.debug(
        "artifacts_resolved",
        application=str(artifacts.application),
        bootloader=artifacts.bootloader.kind,
        partitions=artifacts.partitions.kind,
    )
    return artifacts
