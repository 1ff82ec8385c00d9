"""Configuration models for detection, flashing and progress inference."""

import sys
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_PROBE_BAUD = 115200
DEFAULT_FLASH_BAUD = 921600

# esptool as installed by PlatformIO
DEFAULT_TOOL_PATH = Path("~/.platformio/packages/tool-esptoolpy/esptool.py")


class DetectionConfig(BaseModel):
    """Serial port probe settings."""

    probe_baud: int = Field(
        default=DEFAULT_PROBE_BAUD,
        gt=0,
        description="Baud rate used to open candidate ports while probing",
    )
    probe_hold: float = Field(
        default=0.1, ge=0, description="Seconds a probed port is held open"
    )
    detect_delay: float = Field(
        default=0.5, ge=0, description="Seconds to wait before scanning starts"
    )


class ProgressConfig(BaseModel):
    """Mapping from flashing tool output to a progress percentage.

    The tool prints ``marker`` once per written block; the percentage is
    ``base + scale * count`` capped at ``ceiling`` until the tool exits.
    """

    marker: str = Field(default="Writing at", min_length=1)
    base: float = Field(default=30.0, ge=0, lt=100)
    scale: float = Field(default=1.5, ge=0)
    ceiling: int = Field(default=95, gt=0, lt=100)

    @model_validator(mode="after")
    def validate_base_below_ceiling(self) -> "ProgressConfig":
        if self.base > self.ceiling:
            raise ValueError("progress base must not exceed the ceiling")
        return self


class FlashConfig(BaseModel):
    """Flashing tool invocation and session settings."""

    chip: str = "esp32"
    baud: int = Field(default=DEFAULT_FLASH_BAUD, gt=0)
    before: str = "default_reset"
    after: str = "hard_reset"
    flash_mode: str = "dio"
    flash_freq: str = "40m"
    flash_size: str = "detect"

    bootloader_offset: int = 0x1000
    partitions_offset: int = 0x8000
    application_offset: int = 0x10000

    settle_delay: float = Field(
        default=3.0, ge=0, description="Seconds to wait after a session ends"
    )
    diagnostic_tail_lines: int = Field(default=3, ge=1)

    tool_path: Path = Field(
        default=DEFAULT_TOOL_PATH,
        description="Path to esptool.py (or a standalone esptool executable)",
    )
    python_executable: str = Field(
        default_factory=lambda: sys.executable or "python",
        description="Interpreter used to run a .py flashing tool",
    )
    firmware_dir: Path | None = Field(
        default=None,
        description="Directory holding firmware.bin; defaults to the build tree "
        "next to the executable",
    )
    log_output: Path | None = Field(
        default=None, description="Optional file capturing raw flashing tool output"
    )

    @field_validator(
        "bootloader_offset", "partitions_offset", "application_offset", mode="before"
    )
    @classmethod
    def parse_offset(cls, v: Any) -> Any:
        """Accept hex strings such as ``"0x1000"`` for flash offsets."""
        if isinstance(v, str):
            return int(v, 0)
        return v

    @field_validator("tool_path", "firmware_dir", "log_output", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Any:
        if isinstance(v, str):
            return Path(v).expanduser()
        if isinstance(v, Path):
            return v.expanduser()
        return v


class FlasherSettings(BaseSettings):
    """Settings for serialflash with automatic environment variable support.

    Precedence order (highest to lowest):
    1. Environment variables (``SERIALFLASH_FLASH__BAUD=460800``)
    2. Constructor arguments (file data)
    3. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="SERIALFLASH_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        """Environment variables override file configuration."""
        return (env_settings, init_settings, dotenv_settings, file_secret_settings)

    log_level: str = "WARNING"
    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    flash: FlashConfig = Field(default_factory=FlashConfig)
    progress: ProgressConfig = Field(default_factory=ProgressConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        upper_v = v.strip().upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return upper_v
