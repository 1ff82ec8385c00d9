"""Serial port detection command."""

from typing import TYPE_CHECKING

import typer

from serialflash.cli.console_reporter import ConsoleReporter
from serialflash.cli.decorators import handle_errors
from serialflash.core.structlog_logger import get_struct_logger
from serialflash.firmware.models import DetectedDevice
from serialflash.firmware.scanner import create_port_scanner


if TYPE_CHECKING:
    from serialflash.cli.app import AppContext


logger = get_struct_logger(__name__)


@handle_errors
def detect(ctx: typer.Context) -> None:
    """Probe serial ports and report the first one that opens.

    Exits with status 1 when no port could be opened.
    """
    app_ctx: AppContext = ctx.obj
    themed = app_ctx.console()

    with ConsoleReporter(themed) as console_reporter:
        scanner = create_port_scanner(
            config=app_ctx.settings.detection,
            reporter=app_ctx.event_reporter(console_reporter),
        )
        result = scanner.detect()

    logger.debug("detection_result", **result.to_dict())

    if not isinstance(result, DetectedDevice):
        if result.ports_tried:
            themed.print_detail("Ports tried: " + ", ".join(result.ports_tried))
        raise typer.Exit(1)


def register_commands(app: typer.Typer) -> None:
    """Register detection commands with the main app."""
    app.command(name="detect")(detect)
