"""CLI command modules."""

import typer

from serialflash.cli.commands.config import register_commands as register_config_commands
from serialflash.cli.commands.detect import register_commands as register_detect_commands
from serialflash.cli.commands.flash import register_commands as register_flash_commands


def register_all_commands(app: typer.Typer) -> None:
    """Register all CLI commands with the main app.

    Args:
        app: The main Typer app
    """
    register_detect_commands(app)
    register_flash_commands(app)
    register_config_commands(app)
