"""XDG Base Directory and executable location helpers."""

import os
import sys
from pathlib import Path


def get_xdg_config_dir() -> Path:
    """Get XDG config directory for serialflash.

    Returns:
        Path to config directory: $XDG_CONFIG_HOME/serialflash or ~/.config/serialflash
    """
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / "serialflash"
    return Path.home() / ".config" / "serialflash"


def get_executable_dir() -> Path:
    """Directory of the running program.

    Frozen builds report the bundle executable; otherwise the entry
    script (``sys.argv[0]``) is used, falling back to the working directory.
    """
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    if sys.argv and sys.argv[0]:
        return Path(sys.argv[0]).resolve().parent
    return Path.cwd()
