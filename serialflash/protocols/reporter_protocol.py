"""Protocol for the progress reporting sink."""

from typing import Protocol, runtime_checkable

from serialflash.reporting.events import Severity


@runtime_checkable
class ProgressReporterProtocol(Protocol):
    """Sink for status, progress and detail events.

    These three channels are the only coupling between the flashing core
    and whatever presents it. Implementations must not raise.
    """

    def on_status(self, text: str, severity: Severity) -> None:
        """Report a one-line status message."""
        ...

    def on_progress(self, percent: int, label: str) -> None:
        """Report overall progress in percent (0-100)."""
        ...

    def on_detail(self, text: str) -> None:
        """Report free-form, possibly multi-line, detail text."""
        ...
