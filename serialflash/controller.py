"""Background coordination of detection and flashing for a presentation layer."""

import logging
from threading import Event, Lock, Thread

from serialflash.config.models import FlasherSettings
from serialflash.core.structlog_logger import get_struct_logger
from serialflash.firmware.flash.service import FlashOrchestrator
from serialflash.firmware.models import DetectedDevice, FlashOutcome
from serialflash.firmware.scanner import PortScanner
from serialflash.protocols.reporter_protocol import ProgressReporterProtocol


logger = get_struct_logger(__name__)


class FlasherController:
    """Run detection and flash sessions off the caller's thread.

    The presentation layer starts detection once, enables its flash action
    when ``device_detected`` becomes true and then calls ``request_flash``.
    All feedback reaches it through the reporter shared by the scanner and
    the orchestrator.
    """

    def __init__(
        self,
        scanner: PortScanner,
        orchestrator: FlashOrchestrator,
        port_override: str | None = None,
    ) -> None:
        self.scanner = scanner
        self.orchestrator = orchestrator
        self._port_override = port_override
        self._device: DetectedDevice | None = None
        self._last_outcome: FlashOutcome | None = None
        self._detection_done = Event()
        self._detection_thread: Thread | None = None
        self._flash_thread: Thread | None = None
        self._lock = Lock()

        if port_override:
            self._device = DetectedDevice(
                port=port_override,
                probe_baud=self.scanner.config.probe_baud,
            )
            self._detection_done.set()

    @property
    def port_override(self) -> str | None:
        return self._port_override

    @property
    def device_detected(self) -> bool:
        return self._device is not None

    @property
    def detected_device(self) -> DetectedDevice | None:
        return self._device

    @property
    def last_outcome(self) -> FlashOutcome | None:
        return self._last_outcome

    @property
    def is_flashing(self) -> bool:
        return self.orchestrator.is_active

    def start_detection(self) -> None:
        """Run one detection pass on a daemon thread.

        Does nothing if detection already ran or a port override is set.
        """
        with self._lock:
            if self._detection_thread is not None or self._detection_done.is_set():
                return
            self._detection_thread = Thread(
                target=self._detect, name="serialflash-detect", daemon=True
            )
            self._detection_thread.start()

    def _detect(self) -> None:
        try:
            result = self.scanner.detect()
            if isinstance(result, DetectedDevice):
                self._device = result
        except Exception as e:
            exc_info = logger.isEnabledFor(logging.DEBUG)
            logger.error("detection_failed", error=str(e), exc_info=exc_info)
        finally:
            self._detection_done.set()

    def wait_for_detection(self, timeout: float | None = None) -> bool:
        """Block until detection finished.

        Returns:
            True if a device was detected within ``timeout``
        """
        self._detection_done.wait(timeout)
        return self.device_detected

    def request_flash(self, wait: bool = False) -> bool:
        """Start a flash session on the detected device.

        Args:
            wait: Block until the session (including its settle delay) ends

        Returns:
            False if no device was detected or a session is already running
        """
        device = self._device
        if device is None:
            logger.warning("flash_requested_without_device")
            return False

        with self._lock:
            if self.orchestrator.is_active or (
                self._flash_thread is not None and self._flash_thread.is_alive()
            ):
                logger.info("flash_request_ignored_session_active")
                return False
            thread = Thread(
                target=self._flash,
                args=(device,),
                name="serialflash-flash",
                daemon=True,
            )
            self._flash_thread = thread
            thread.start()

        if wait:
            thread.join()
        return True

    def _flash(self, device: DetectedDevice) -> None:
        outcome = self.orchestrator.flash(device)
        if outcome is not None:
            self._last_outcome = outcome


def create_flasher_controller(
    settings: FlasherSettings | None = None,
    reporter: ProgressReporterProtocol | None = None,
    scanner: PortScanner | None = None,
    orchestrator: FlashOrchestrator | None = None,
    port_override: str | None = None,
) -> FlasherController:
    """Create a FlasherController whose scanner and orchestrator share ``reporter``."""
    settings = settings or FlasherSettings()
    if scanner is None:
        from serialflash.firmware.scanner import create_port_scanner

        scanner = create_port_scanner(config=settings.detection, reporter=reporter)
    if orchestrator is None:
        from serialflash.firmware.flash.service import create_flash_orchestrator

        orchestrator = create_flash_orchestrator(settings=settings, reporter=reporter)
    return FlasherController(
        scanner=scanner, orchestrator=orchestrator, port_override=port_override
    )
