"""Flash orchestration: one esptool run per session, with inferred progress."""

import logging
import shlex
import time
from collections.abc import Callable
from pathlib import Path
from threading import Lock

from serialflash.config.models import FlasherSettings
from serialflash.core.errors import MissingArtifactError, MissingToolchainError
from serialflash.core.structlog_logger import get_struct_logger
from serialflash.firmware.artifacts import default_firmware_dir, resolve_artifacts
from serialflash.firmware.flash.progress import (
    FlashProgressMiddleware,
    diagnostic_tail,
)
from serialflash.firmware.flash.session import FlashSession
from serialflash.firmware.models import (
    DetectedDevice,
    FailureKind,
    FlashFailure,
    FlashOutcome,
    FlashState,
)
from serialflash.firmware.toolchain import build_flash_command, locate_tool
from serialflash.protocols.reporter_protocol import ProgressReporterProtocol
from serialflash.reporting.events import Severity
from serialflash.reporting.reporters import MultiReporter, NullReporter
from serialflash.utils.log_middleware import OutputLogCaptureMiddleware
from serialflash.utils.stream_process import (
    OutputMiddleware,
    ProcessFactory,
    create_chained_middleware,
    run_command,
)


logger = get_struct_logger(__name__)

FLASHING_LABEL = "Flashing firmware..."


class FlashOrchestrator:
    """Drive a single flash session from artifact lookup to device reboot.

    Only one session runs at a time. ``flash`` blocks until the session has
    ended and the settle delay has passed; callers wanting a responsive UI
    run it on a worker thread and consume events from the reporter.

    Every failure, expected or not, ends as a failed ``FlashOutcome``:
    nothing raised during a session escapes ``flash``.
    """

    def __init__(
        self,
        settings: FlasherSettings | None = None,
        reporter: ProgressReporterProtocol | None = None,
        process_factory: ProcessFactory | None = None,
        sleep: Callable[[float], None] = time.sleep,
        executable_dir: Path | None = None,
    ) -> None:
        self.settings = settings or FlasherSettings()
        # Reporter errors are logged by MultiReporter and never fail a session
        self.reporter = MultiReporter([reporter or NullReporter()])
        self.process_factory = process_factory
        self.executable_dir = executable_dir
        self.session = FlashSession()
        self._sleep = sleep
        self._active = Lock()

    @property
    def is_active(self) -> bool:
        """True from the start of a session until it is back to Idle."""
        return self._active.locked()

    def firmware_dir(self) -> Path:
        """Directory the firmware images are read from."""
        configured = self.settings.flash.firmware_dir
        if configured is not None:
            return configured
        return default_firmware_dir(self.executable_dir)

    def flash(self, device: DetectedDevice) -> FlashOutcome | None:
        """Flash the firmware images to ``device``.

        Returns:
            The terminal outcome of the session, or None if another session
            is already in progress (the request is ignored)
        """
        if not self._active.acquire(blocking=False):
            logger.warning("flash_rejected_session_active", port=device.port)
            return None

        try:
            logger.info("flash_session_started", port=device.port)
            outcome = self._run_session(device)
            logger.info(
                "flash_session_finished",
                port=device.port,
                success=outcome.success,
                failure=outcome.failure.kind.value if outcome.failure else None,
                elapsed=round(outcome.elapsed_seconds, 2),
            )

            settle_delay = self.settings.flash.settle_delay
            if settle_delay > 0:
                self._sleep(settle_delay)
            return outcome
        finally:
            if self.session.state.is_terminal:
                self.session.transition(FlashState.IDLE)
            self._active.release()

    def _report_progress(self, percent: int, label: str) -> None:
        self.session.advance(
            percent, lambda value: self.reporter.on_progress(value, label)
        )

    def _report_detail(self, text: str) -> None:
        self.session.last_detail = text
        self.reporter.on_detail(text)

    def _run_session(self, device: DetectedDevice) -> FlashOutcome:
        port = device.port
        self.session.begin(port)

        try:
            self.reporter.on_status("Preparing firmware...", Severity.INFO)
            self._report_progress(5, "Preparing firmware...")

            try:
                artifacts = resolve_artifacts(self.firmware_dir())
            except MissingArtifactError as e:
                return self._fail(
                    FlashFailure(kind=FailureKind.MISSING_ARTIFACT, message=str(e)),
                    status="Error: Firmware file not found",
                    detail=f"Please build the firmware first.\nExpected: {e.path}",
                )

            self._report_progress(10, "Connecting...")
            self.reporter.on_status("Connecting to ESP32...", Severity.INFO)
            self._report_detail(f"Port: {port}\nErasing flash...")

            self.session.transition(FlashState.TOOLCHAIN_CHECK)
            try:
                tool = locate_tool(self.settings.flash.tool_path)
            except MissingToolchainError as e:
                return self._fail(
                    FlashFailure(kind=FailureKind.MISSING_TOOLCHAIN, message=str(e)),
                    status="Error: esptool.py not found",
                    detail="Please ensure PlatformIO is installed.",
                )
            self._report_progress(20, "Connecting...")

            self.session.transition(FlashState.LAUNCHING)
            command = build_flash_command(tool, port, artifacts, self.settings.flash)
            logger.info("flash_command_built", command=shlex.join(command))
            self._report_progress(30, FLASHING_LABEL)
            self.reporter.on_status(FLASHING_LABEL, Severity.INFO)

            self.session.transition(FlashState.STREAMING)
            return_code = self._stream(command)
            logger.debug("flash_tool_exited", return_code=return_code)

            if return_code == 0:
                outcome = FlashOutcome.succeeded(port, self.session.elapsed_time)
                self.session.transition(FlashState.SUCCEEDED)
                self._report_progress(100, "Complete")
                self.reporter.on_status(
                    "Firmware flashed successfully!", Severity.SUCCESS
                )
                self._report_detail("ESP32 is rebooting...\nDevice ready for use.")
                return outcome

            tail = diagnostic_tail(
                self.session, self.settings.flash.diagnostic_tail_lines
            )
            return self._fail(
                FlashFailure(
                    kind=FailureKind.NON_ZERO_EXIT,
                    message=f"Flashing tool exited with code {return_code}",
                    exit_code=return_code,
                    diagnostic_tail=tail,
                ),
                status="Flashing failed",
                detail=f"Error code: {return_code}\n{tail}",
            )

        except Exception as e:
            exc_info = logger.isEnabledFor(logging.DEBUG)
            if self.session.state is FlashState.SUCCEEDED:
                # The image is already written; the outcome stays a success
                logger.error(
                    "flash_post_success_error", error=str(e), exc_info=exc_info
                )
                return FlashOutcome.succeeded(port, self.session.elapsed_time)
            logger.error("flash_session_error", error=str(e), exc_info=exc_info)
            return self._fail(
                FlashFailure(kind=FailureKind.UNEXPECTED_EXCEPTION, message=str(e)),
                status="Error during flash process",
                detail=f"Exception: {e}",
            )

    def _stream(self, command: list[str]) -> int:
        """Run the flashing tool, feeding each output line to the middlewares."""
        middlewares: list[OutputMiddleware[str]] = [
            FlashProgressMiddleware(
                self.session, self.reporter, self.settings.progress, FLASHING_LABEL
            )
        ]

        log_capture: OutputLogCaptureMiddleware | None = None
        if self.settings.flash.log_output is not None:
            log_capture = OutputLogCaptureMiddleware(self.settings.flash.log_output)
            middlewares.append(log_capture)

        try:
            return_code, _, _ = run_command(
                command,
                create_chained_middleware(middlewares),
                process_factory=self.process_factory,
            )
        finally:
            if log_capture is not None:
                log_capture.close()
        return return_code

    def _fail(self, failure: FlashFailure, status: str, detail: str) -> FlashOutcome:
        if not self.session.state.is_terminal:
            self.session.transition(FlashState.FAILED)

        logger.warning(
            "flash_failed",
            kind=failure.kind.value,
            message=failure.message,
            exit_code=failure.exit_code,
        )
        self.reporter.on_status(status, Severity.ERROR)
        self._report_detail(detail)
        return FlashOutcome.failed(
            failure, port=self.session.port, elapsed_seconds=self.session.elapsed_time
        )


def create_flash_orchestrator(
    settings: FlasherSettings | None = None,
    reporter: ProgressReporterProtocol | None = None,
    process_factory: ProcessFactory | None = None,
    executable_dir: Path | None = None,
) -> FlashOrchestrator:
    """Create a FlashOrchestrator with the given settings and reporter."""
    return FlashOrchestrator(
        settings=settings,
        reporter=reporter,
        process_factory=process_factory,
        executable_dir=executable_dir,
    )
