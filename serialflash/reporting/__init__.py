"""Reporting sinks and event models."""

from .events import DetailEvent, Event, ProgressEvent, Severity, StatusEvent
from .reporters import LoggingReporter, MultiReporter, NullReporter, QueueReporter


__all__ = [
    "DetailEvent",
    "Event",
    "LoggingReporter",
    "MultiReporter",
    "NullReporter",
    "ProgressEvent",
    "QueueReporter",
    "Severity",
    "StatusEvent",
]
