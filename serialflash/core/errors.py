"""Exception hierarchy for serialflash."""

from pathlib import Path
from typing import Any


class SerialFlashError(Exception):
    """Base error for all serialflash operations."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.context = context or {}


class ConfigError(SerialFlashError):
    """Configuration loading or validation failed."""


class DetectionError(SerialFlashError):
    """Serial port enumeration failed."""


class FlashError(SerialFlashError):
    """A flash attempt could not be completed."""


class MissingArtifactError(FlashError):
    """The required application image is not present."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Firmware file not found: {path}", {"path": str(path)})
        self.path = path


class MissingToolchainError(FlashError):
    """The flashing tool is not installed at the expected location."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Flashing tool not found: {path}", {"path": str(path)})
        self.path = path


class InvalidTransitionError(SerialFlashError):
    """A flash session was asked to move to a state it cannot reach."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            f"Invalid session transition: {current} -> {target}",
            {"current": current, "target": target},
        )
        self.current = current
        self.target = target


__all__ = [
    "ConfigError",
    "DetectionError",
    "FlashError",
    "InvalidTransitionError",
    "MissingArtifactError",
    "MissingToolchainError",
    "SerialFlashError",
]
