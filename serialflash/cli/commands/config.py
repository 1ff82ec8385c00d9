"""Configuration CLI commands."""

from typing import TYPE_CHECKING, Annotated

import typer

from serialflash.cli.decorators import handle_errors


if TYPE_CHECKING:
    from serialflash.cli.app import AppContext


config_app = typer.Typer(
    name="config",
    help="Configuration management commands",
    no_args_is_help=True,
)


@config_app.command(name="show")
@handle_errors
def show_config(
    ctx: typer.Context,
    show_sources: Annotated[
        bool, typer.Option("--sources", help="Show configuration sources")
    ] = False,
) -> None:
    """Show effective configuration settings."""
    app_ctx: AppContext = ctx.obj
    themed = app_ctx.console()
    user_config = app_ctx.user_config

    columns = ["Setting", "Value"]
    if show_sources:
        columns.append("Source")
    table = themed.create_table("serialflash configuration", *columns)

    for key, value in sorted(user_config.flattened().items()):
        row = [key, "null" if value is None else str(value)]
        if show_sources:
            row.append(user_config.get_source(key))
        table.add_row(*row)

    themed.console.print(table)
    if user_config.config_path is not None:
        themed.print_detail(f"Config file: {user_config.config_path}")


def register_commands(app: typer.Typer) -> None:
    """Register config commands with the main app.

    Args:
        app: The main Typer app
    """
    app.add_typer(config_app, name="config")
