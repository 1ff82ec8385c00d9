"""Models for device detection, firmware artifacts and flash outcomes."""

from enum import Enum
from pathlib import Path
from typing import Annotated, Literal

from pydantic import ConfigDict, Field

from serialflash.models.base import SerialFlashBaseModel
from serialflash.models.results import BaseResult


class DetectedDevice(SerialFlashBaseModel):
    """A serial port that accepted a probe connection."""

    model_config = ConfigDict(frozen=True)

    port: str
    probe_baud: int


class NotFound(SerialFlashBaseModel):
    """No candidate port accepted a probe connection."""

    model_config = ConfigDict(frozen=True)

    ports_tried: tuple[str, ...] = ()


DetectionResult = DetectedDevice | NotFound


class Present(SerialFlashBaseModel):
    """An artifact file that exists."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["present"] = "present"
    path: Path


class Absent(SerialFlashBaseModel):
    """An optional artifact that was looked for and not found."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["absent"] = "absent"
    expected: Path


ArtifactSlot = Annotated[Present | Absent, Field(discriminator="kind")]


def slot_for(path: Path) -> Present | Absent:
    """Present if ``path`` is an existing file, Absent otherwise."""
    return Present(path=path) if path.is_file() else Absent(expected=path)


class FirmwareArtifactSet(SerialFlashBaseModel):
    """Images written in one flash session."""

    model_config = ConfigDict(frozen=True)

    application: Path
    bootloader: ArtifactSlot
    partitions: ArtifactSlot


class FlashState(str, Enum):
    """Lifecycle states of a flash session."""

    IDLE = "idle"
    PREPARING = "preparing"
    TOOLCHAIN_CHECK = "toolchain_check"
    LAUNCHING = "launching"
    STREAMING = "streaming"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (FlashState.SUCCEEDED, FlashState.FAILED)


class FailureKind(str, Enum):
    """Why a flash session failed."""

    MISSING_ARTIFACT = "missing_artifact"
    MISSING_TOOLCHAIN = "missing_toolchain"
    NON_ZERO_EXIT = "non_zero_exit"
    UNEXPECTED_EXCEPTION = "unexpected_exception"


class FlashFailure(SerialFlashBaseModel):
    """Details of a failed session."""

    model_config = ConfigDict(frozen=True)

    kind: FailureKind
    message: str
    exit_code: int | None = None
    diagnostic_tail: str | None = None


class FlashOutcome(BaseResult):
    """Terminal result of one flash session."""

    port: str | None = None
    failure: FlashFailure | None = None
    elapsed_seconds: float = 0.0

    @property
    def state(self) -> FlashState:
        return FlashState.SUCCEEDED if self.is_success() else FlashState.FAILED

    @classmethod
    def succeeded(cls, port: str, elapsed_seconds: float = 0.0) -> "FlashOutcome":
        outcome = cls(success=True, port=port, elapsed_seconds=elapsed_seconds)
        outcome.add_message(f"Firmware flashed to {port}")
        return outcome

    @classmethod
    def failed(
        cls,
        failure: FlashFailure,
        port: str | None = None,
        elapsed_seconds: float = 0.0,
    ) -> "FlashOutcome":
        outcome = cls(
            success=False,
            port=port,
            failure=failure,
            elapsed_seconds=elapsed_seconds,
        )
        outcome.add_error(failure.message)
        return outcome
