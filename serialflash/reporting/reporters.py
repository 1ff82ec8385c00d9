"""Reporter implementations for the flashing core."""

import logging
import queue
from collections.abc import Iterable
from typing import TYPE_CHECKING

from serialflash.core.structlog_logger import get_struct_logger
from serialflash.reporting.events import (
    DetailEvent,
    Event,
    ProgressEvent,
    Severity,
    StatusEvent,
)


if TYPE_CHECKING:
    from serialflash.protocols.reporter_protocol import ProgressReporterProtocol


logger = get_struct_logger(__name__)

_SEVERITY_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class NullReporter:
    """Silent reporter for testing or programmatic use."""

    def on_status(self, text: str, severity: Severity) -> None:
        pass

    def on_progress(self, percent: int, label: str) -> None:
        pass

    def on_detail(self, text: str) -> None:
        pass


class QueueReporter:
    """Event channel consumed by a presentation layer on its own schedule.

    Producers run on worker threads; the consumer polls ``get_events`` from
    whatever thread owns the display. Events are never dropped.
    """

    def __init__(self) -> None:
        self._queue: queue.Queue[Event] = queue.Queue()

    def on_status(self, text: str, severity: Severity) -> None:
        self._queue.put(StatusEvent(text=text, severity=severity))

    def on_progress(self, percent: int, label: str) -> None:
        self._queue.put(ProgressEvent(percent=percent, label=label))

    def on_detail(self, text: str) -> None:
        self._queue.put(DetailEvent(text=text))

    def get_events(self) -> list[Event]:
        """Drain all queued events without blocking."""
        events: list[Event] = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                return events

    def get(self, timeout: float | None = None) -> Event | None:
        """Block for the next event, returning None on timeout."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None


class LoggingReporter:
    """Forward events to structured logs."""

    def on_status(self, text: str, severity: Severity) -> None:
        logger.log(_SEVERITY_LEVELS[Severity(severity)], "status", text=text)

    def on_progress(self, percent: int, label: str) -> None:
        logger.debug("progress", percent=percent, label=label)

    def on_detail(self, text: str) -> None:
        logger.debug("detail", text=text)


class MultiReporter:
    """Fan events out to several reporters.

    A failing reporter is logged and skipped so one broken sink cannot stop
    the others or the operation that emits the event.
    """

    def __init__(self, reporters: Iterable["ProgressReporterProtocol"]) -> None:
        self.reporters = list(reporters)

    def _dispatch(self, method: str, *args: object) -> None:
        for reporter in self.reporters:
            try:
                getattr(reporter, method)(*args)
            except Exception as e:
                exc_info = logger.isEnabledFor(logging.DEBUG)
                logger.warning(
                    "reporter_failed",
                    reporter=type(reporter).__name__,
                    method=method,
                    error=str(e),
                    exc_info=exc_info,
                )

    def on_status(self, text: str, severity: Severity) -> None:
        self._dispatch("on_status", text, severity)

    def on_progress(self, percent: int, label: str) -> None:
        self._dispatch("on_progress", percent, label)

    def on_detail(self, text: str) -> None:
        self._dispatch("on_detail", text)
