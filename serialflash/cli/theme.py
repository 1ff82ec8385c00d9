"""Rich styling shared by CLI commands."""

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

from serialflash.reporting.events import Severity


class Colors:
    """Standardized color palette for CLI output."""

    SUCCESS = "bold green"
    ERROR = "bold red"
    WARNING = "bold yellow"
    INFO = "bold blue"

    PRIMARY = "cyan"
    MUTED = "dim"
    HEADER = "bold cyan"


class Icons:
    """Icons for message types, with plain text fallbacks."""

    SUCCESS = "✅"
    ERROR = "❌"
    WARNING = "⚠️"
    INFO = "ℹ️"

    _TEXT_FALLBACKS = {
        "SUCCESS": "OK",
        "ERROR": "ERROR",
        "WARNING": "!",
        "INFO": "i",
    }

    @classmethod
    def get(cls, name: str, use_emoji: bool = True) -> str:
        if use_emoji:
            return str(getattr(cls, name, ""))
        return cls._TEXT_FALLBACKS.get(name, "")

    @classmethod
    def format_with_icon(cls, name: str, text: str, use_emoji: bool = True) -> str:
        icon = cls.get(name, use_emoji)
        return f"{icon} {text}" if icon else text


SERIALFLASH_THEME = Theme(
    {
        "success": Colors.SUCCESS,
        "error": Colors.ERROR,
        "warning": Colors.WARNING,
        "info": Colors.INFO,
        "muted": Colors.MUTED,
        "header": Colors.HEADER,
    }
)

_SEVERITY_STYLES = {
    Severity.INFO: ("info", "INFO"),
    Severity.SUCCESS: ("success", "SUCCESS"),
    Severity.WARNING: ("warning", "WARNING"),
    Severity.ERROR: ("error", "ERROR"),
}


class ThemedConsole:
    """Console wrapper applying the serialflash theme and icon mode."""

    def __init__(self, use_emoji: bool = True, console: Console | None = None) -> None:
        self.use_emoji = use_emoji
        self.console = console or Console(theme=SERIALFLASH_THEME)

    def print_severity(self, text: str, severity: Severity) -> None:
        style, icon = _SEVERITY_STYLES[Severity(severity)]
        self.console.print(
            Icons.format_with_icon(icon, text, self.use_emoji), style=style
        )

    def print_detail(self, text: str) -> None:
        for line in text.splitlines():
            self.console.print(f"  {line}", style="muted", highlight=False)

    def create_table(self, title: str, *columns: str) -> Table:
        table = Table(title=title, show_header=True, header_style="header")
        for column in columns:
            table.add_column(column)
        return table
