"""Core infrastructure: errors and logging."""

from .errors import (
    ConfigError,
    DetectionError,
    FlashError,
    InvalidTransitionError,
    MissingArtifactError,
    MissingToolchainError,
    SerialFlashError,
)
from .structlog_logger import get_struct_logger


__all__ = [
    "ConfigError",
    "DetectionError",
    "FlashError",
    "InvalidTransitionError",
    "MissingArtifactError",
    "MissingToolchainError",
    "SerialFlashError",
    "get_struct_logger",
]
