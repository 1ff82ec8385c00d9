"""Main CLI application for serialflash."""

import logging
import sys
from importlib.metadata import distribution
from typing import Annotated

import typer

from serialflash.cli.commands import register_all_commands
from serialflash.cli.decorators import print_stack_trace_if_verbose
from serialflash.cli.theme import ThemedConsole
from serialflash.config.models import FlasherSettings
from serialflash.core.errors import ConfigError
from serialflash.core.logging import setup_logging
from serialflash.core.structlog_logger import get_struct_logger
from serialflash.protocols.reporter_protocol import ProgressReporterProtocol
from serialflash.reporting.reporters import LoggingReporter, MultiReporter


__all__ = ["AppContext", "app", "main", "__version__"]


__version__ = distribution("serialflash").version

logger = get_struct_logger(__name__)


class AppContext:
    """Application context for storing shared state."""

    def __init__(
        self,
        verbose: int = 0,
        log_file: str | None = None,
        config_file: str | None = None,
        no_emoji: bool = False,
    ) -> None:
        self.verbose = verbose
        self.log_file = log_file
        self.config_file = config_file
        self.no_emoji = no_emoji

        from serialflash.config.user_config import create_user_config

        self.user_config = create_user_config(cli_config_path=config_file)

    @property
    def settings(self) -> FlasherSettings:
        return self.user_config.settings

    @property
    def use_emoji(self) -> bool:
        return not self.no_emoji

    def console(self) -> ThemedConsole:
        return ThemedConsole(use_emoji=self.use_emoji)

    def event_reporter(
        self, reporter: ProgressReporterProtocol
    ) -> ProgressReporterProtocol:
        """Reporter for commands, also logging events when a log file is set."""
        if self.log_file is None:
            return reporter
        return MultiReporter([reporter, LoggingReporter()])


app = typer.Typer(
    name="serialflash",
    help=f"""serialflash v{__version__}

Find an ESP32 board on a serial port and flash the controller firmware
with esptool.

Common workflows:
  • Find the board:   serialflash detect
  • Flash firmware:   serialflash flash
  • Pick the port:    serialflash flash --port /dev/ttyUSB0""",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity (-v=INFO, -vv=DEBUG)",
        ),
    ] = 0,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug logging (equivalent to -vv)"),
    ] = False,
    log_file: Annotated[
        str | None, typer.Option("--log-file", help="Log to file")
    ] = None,
    config_file: Annotated[
        str | None,
        typer.Option("-c", "--config", help="Path to configuration file"),
    ] = None,
    no_emoji: Annotated[
        bool,
        typer.Option("--no-emoji", help="Disable emoji icons in output"),
    ] = False,
    version: Annotated[
        bool, typer.Option("--version", help="Show version and exit")
    ] = False,
) -> None:
    """serialflash ESP32 firmware flasher."""
    if version:
        print(f"serialflash v{__version__}")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        print(ctx.get_help())
        raise typer.Exit()

    try:
        app_context = AppContext(
            verbose=verbose,
            log_file=log_file,
            config_file=config_file,
            no_emoji=no_emoji,
        )
    except ConfigError as e:
        logger.error("configuration_error", error=str(e))
        print_stack_trace_if_verbose()
        raise typer.Exit(1) from e
    ctx.obj = app_context

    log_level = logging.WARNING
    if debug:
        log_level = logging.DEBUG
    elif verbose == 1:
        log_level = logging.INFO
    elif verbose >= 2:
        log_level = logging.DEBUG
    elif not verbose and log_file is None:
        log_level = app_context.user_config.get_log_level_int()

    setup_logging(level=log_level, log_file=log_file)


register_all_commands(app)


def main() -> int:
    """Main CLI entry point."""
    try:
        app()
        return 0
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 0
    except Exception as e:
        logger.error("unexpected_error", error=str(e))
        print_stack_trace_if_verbose()
        return 1


if __name__ == "__main__":
    sys.exit(main())
