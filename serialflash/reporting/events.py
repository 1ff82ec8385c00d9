"""Event models emitted toward the presentation layer."""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import Field

from serialflash.models.base import SerialFlashBaseModel


class Severity(str, Enum):
    """How a status line should be presented."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class ReporterEvent(SerialFlashBaseModel):
    """Common fields of every emitted event."""

    timestamp: datetime = Field(default_factory=datetime.now)


class StatusEvent(ReporterEvent):
    kind: Literal["status"] = "status"
    text: str
    severity: Severity = Severity.INFO


class ProgressEvent(ReporterEvent):
    kind: Literal["progress"] = "progress"
    percent: int = Field(ge=0, le=100)
    label: str = ""


class DetailEvent(ReporterEvent):
    kind: Literal["detail"] = "detail"
    text: str


Event = StatusEvent | ProgressEvent | DetailEvent
