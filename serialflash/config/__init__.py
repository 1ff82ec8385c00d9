"""Configuration models and loading."""

from .models import (
    DetectionConfig,
    FlashConfig,
    FlasherSettings,
    ProgressConfig,
)
from .user_config import UserConfig, create_user_config


__all__ = [
    "DetectionConfig",
    "FlashConfig",
    "FlasherSettings",
    "ProgressConfig",
    "UserConfig",
    "create_user_config",
]
