"""Rich console reporter showing flash progress in the terminal."""

from typing import Any

from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)

from serialflash.cli.theme import ThemedConsole
from serialflash.reporting.events import Severity


class ConsoleReporter:
    """Print status and detail lines and drive a single progress bar.

    The bar only appears once the first progress event arrives, so a
    detection-only run prints plain status lines.
    """

    def __init__(self, themed_console: ThemedConsole | None = None) -> None:
        self.themed = themed_console or ThemedConsole()
        self.progress: Progress | None = None
        self.task: TaskID | None = None

    def __enter__(self) -> "ConsoleReporter":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()

    def _start(self) -> None:
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=self.themed.console,
        )
        self.progress.start()
        self.task = self.progress.add_task(description="Flashing", total=100)

    def stop(self) -> None:
        if self.progress is not None:
            self.progress.stop()
            self.progress = None
            self.task = None

    def on_status(self, text: str, severity: Severity) -> None:
        self.themed.print_severity(text, severity)

    def on_progress(self, percent: int, label: str) -> None:
        if self.progress is None:
            self._start()
        assert self.progress is not None and self.task is not None
        self.progress.update(self.task, completed=percent, description=label)

    def on_detail(self, text: str) -> None:
        self.themed.print_detail(text)
