"""Flashing tool lookup and command line construction."""

from pathlib import Path

from serialflash.config.models import FlashConfig
from serialflash.core.errors import MissingToolchainError
from serialflash.firmware.models import FirmwareArtifactSet, Present


def locate_tool(tool_path: Path) -> Path:
    """Return the absolute path of the flashing tool.

    Raises:
        MissingToolchainError: If nothing exists at ``tool_path``
    """
    resolved = tool_path.expanduser()
    if not resolved.is_file():
        raise MissingToolchainError(resolved)
    return resolved.resolve()


def _offset(value: int) -> str:
    return f"0x{value:x}"


def build_flash_command(
    tool: Path,
    port: str,
    artifacts: FirmwareArtifactSet,
    config: FlashConfig,
) -> list[str]:
    """Build the esptool command line for one session.

    Images are written in fixed order: bootloader, partition table,
    application. Absent optional images are left out entirely.
    """
    command: list[str] = []
    if tool.suffix == ".py":
        command.append(config.python_executable)
    command.append(str(tool))

    command.extend(
        [
            "--chip",
            config.chip,
            "--port",
            port,
            "--baud",
            str(config.baud),
            "--before",
            config.before,
            "--after",
            config.after,
            "write_flash",
            "-z",
            "--flash_mode",
            config.flash_mode,
            "--flash_freq",
            config.flash_freq,
            "--flash_size",
            config.flash_size,
        ]
    )

    images = [
        (config.bootloader_offset, artifacts.bootloader),
        (config.partitions_offset, artifacts.partitions),
        (config.application_offset, Present(path=artifacts.application)),
    ]
    for offset, slot in images:
        if isinstance(slot, Present):
            command.extend([_offset(offset), str(slot.path)])

    return command
