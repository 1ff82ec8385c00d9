"""
User configuration management for serialflash.

Settings are read from multiple sources:
1. Environment variables (highest precedence)
2. Command-line provided config file
3. Config file in current directory
4. User's XDG config directory
5. Default values (lowest precedence)
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from serialflash.config.models import FlasherSettings
from serialflash.core.errors import ConfigError
from serialflash.core.structlog_logger import get_struct_logger
from serialflash.utils.xdg import get_xdg_config_dir


logger = get_struct_logger(__name__)

ENV_PREFIX = "SERIALFLASH_"

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class UserConfig:
    """Loads FlasherSettings from YAML files and the environment.

    The first existing file in the search path wins; values it sets are
    overridden by ``SERIALFLASH_*`` environment variables.
    """

    def __init__(self, cli_config_path: str | Path | None = None) -> None:
        self._config_sources: dict[str, str] = {}
        self._config_path: Path | None = None
        self._config_paths = self._generate_config_paths(cli_config_path)
        self._config = self._load_config()

    @property
    def settings(self) -> FlasherSettings:
        return self._config

    @property
    def config_path(self) -> Path | None:
        """Config file the settings were read from, if any."""
        return self._config_path

    def _generate_config_paths(self, cli_config_path: str | Path | None) -> list[Path]:
        """Generate a list of config paths to search in order of precedence."""
        config_paths = []

        if cli_config_path:
            config_paths.append(Path(cli_config_path).expanduser().resolve())

        config_paths.extend(
            [Path.cwd() / "serialflash.yaml", Path.cwd() / ".serialflash.yml"]
        )

        xdg_dir = get_xdg_config_dir()
        config_paths.extend([xdg_dir / "config.yaml", xdg_dir / "config.yml"])

        return config_paths

    def _read_file(self, path: Path) -> dict[str, Any]:
        try:
            with path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(
                f"Failed to read config file {path}: {e}", {"path": str(path)}
            ) from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(
                f"Config file {path} must contain a mapping", {"path": str(path)}
            )
        return data

    def _load_config(self) -> FlasherSettings:
        logger.debug(
            "config_search_started", paths=[str(p) for p in self._config_paths]
        )

        config_data: dict[str, Any] = {}
        for path in self._config_paths:
            if path.is_file():
                config_data = self._read_file(path)
                self._config_path = path
                self._track_file_sources(config_data, path.name)
                logger.debug("config_file_loaded", path=str(path))
                break
        else:
            logger.debug("config_file_not_found")

        try:
            settings = FlasherSettings(**config_data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

        self._track_env_var_sources()
        return settings

    def _track_file_sources(
        self, data: dict[str, Any], filename: str, prefix: str = ""
    ) -> None:
        """Recursively track sources for file-based configuration values."""
        for key, value in data.items():
            current_key = f"{prefix}.{key}" if prefix else key
            if isinstance(value, dict):
                self._track_file_sources(value, filename, current_key)
            else:
                self._config_sources[current_key] = f"file:{filename}"

    def _track_env_var_sources(self) -> None:
        """Track which configuration values came from environment variables."""
        for env_name in os.environ:
            if not env_name.upper().startswith(ENV_PREFIX):
                continue
            config_key = env_name[len(ENV_PREFIX) :].lower().replace("__", ".")
            self._config_sources[config_key] = "environment"

    def get_source(self, key: str) -> str:
        """Get the source of a configuration value (environment, file:name, default)."""
        return self._config_sources.get(key, "default")

    def get_log_level_int(self) -> int:
        """Get the configured log level for the logging module."""
        return LOG_LEVELS.get(self._config.log_level.upper(), logging.WARNING)

    def flattened(self) -> dict[str, Any]:
        """Effective settings as dotted keys, e.g. ``flash.baud``."""
        flat: dict[str, Any] = {}

        def walk(data: dict[str, Any], prefix: str = "") -> None:
            for key, value in data.items():
                dotted = f"{prefix}.{key}" if prefix else key
                if isinstance(value, dict):
                    walk(value, dotted)
                else:
                    flat[dotted] = value

        walk(self._config.model_dump(mode="json"))
        return flat


def create_user_config(cli_config_path: str | Path | None = None) -> UserConfig:
    """Create a UserConfig instance.

    Raises:
        ConfigError: If a config file cannot be read or fails validation
    """
    return UserConfig(cli_config_path=cli_config_path)
