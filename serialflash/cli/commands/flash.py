"""Firmware flash command."""

from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import typer

from serialflash.cli.console_reporter import ConsoleReporter
from serialflash.cli.decorators import handle_errors
from serialflash.config.models import FlasherSettings
from serialflash.controller import create_flasher_controller
from serialflash.core.structlog_logger import get_struct_logger


if TYPE_CHECKING:
    from serialflash.cli.app import AppContext


logger = get_struct_logger(__name__)


def apply_overrides(
    settings: FlasherSettings,
    firmware_dir: Path | None = None,
    tool: Path | None = None,
    baud: int | None = None,
) -> FlasherSettings:
    """Settings with command line values replacing configured ones."""
    updates: dict[str, Any] = {}
    if firmware_dir is not None:
        updates["firmware_dir"] = firmware_dir.expanduser()
    if tool is not None:
        updates["tool_path"] = tool.expanduser()
    if baud is not None:
        updates["baud"] = baud
    if not updates:
        return settings
    return settings.model_copy(
        update={"flash": settings.flash.model_copy(update=updates)}
    )


@handle_errors
def flash(
    ctx: typer.Context,
    port: Annotated[
        str | None,
        typer.Option("--port", "-p", help="Serial port to flash (skips detection)"),
    ] = None,
    firmware_dir: Annotated[
        Path | None,
        typer.Option(
            "--firmware-dir",
            help="Directory containing firmware.bin, bootloader.bin, partitions.bin",
        ),
    ] = None,
    tool: Annotated[
        Path | None, typer.Option("--tool", help="Path to esptool.py")
    ] = None,
    baud: Annotated[
        int | None, typer.Option("--baud", min=1, help="Flashing baud rate")
    ] = None,
) -> None:
    """Detect the board (unless --port is given) and flash the firmware.

    Exits with status 0 when the firmware was written, 1 otherwise.
    """
    app_ctx: AppContext = ctx.obj
    settings = apply_overrides(app_ctx.settings, firmware_dir, tool, baud)

    with ConsoleReporter(app_ctx.console()) as console_reporter:
        controller = create_flasher_controller(
            settings=settings,
            reporter=app_ctx.event_reporter(console_reporter),
            port_override=port,
        )

        if not controller.device_detected:
            controller.start_detection()
            if not controller.wait_for_detection():
                raise typer.Exit(1)

        controller.request_flash(wait=True)

    outcome = controller.last_outcome
    if outcome is None:
        raise typer.Exit(1)

    logger.info("flash_command_completed", port=outcome.port, **outcome.get_summary())
    if not outcome.success:
        raise typer.Exit(1)


def register_commands(app: typer.Typer) -> None:
    """Register flash commands with the main app."""
    app.command(name="flash")(flash)
