"""Progress inference from flashing tool output."""

from serialflash.config.models import ProgressConfig
from serialflash.core.structlog_logger import get_struct_logger
from serialflash.firmware.flash.session import FlashSession
from serialflash.protocols.reporter_protocol import ProgressReporterProtocol
from serialflash.utils.stream_process import OutputMiddleware


logger = get_struct_logger(__name__)

EMPTY_OUTPUT_PLACEHOLDER = "(no output from flashing tool)"


def estimate_percent(write_events: int, config: ProgressConfig) -> int:
    """Map a count of write markers onto a percentage below the ceiling."""
    return min(config.ceiling, int(config.base + config.scale * write_events))


class FlashProgressMiddleware(OutputMiddleware[str]):
    """Record tool output on the session and report estimated progress.

    esptool prints no overall percentage, only one line per written block.
    Each line containing ``config.marker`` bumps the estimate; the estimate
    never reaches 100 while the tool is still running.
    """

    def __init__(
        self,
        session: FlashSession,
        reporter: ProgressReporterProtocol,
        config: ProgressConfig | None = None,
        label: str = "Flashing firmware...",
    ) -> None:
        self.session = session
        self.reporter = reporter
        self.config = config or ProgressConfig()
        self.label = label

    def process(self, line: str, stream_type: str) -> str:
        is_write = self.config.marker in line
        count = self.session.record_line(line, is_write)

        if is_write:
            percent = estimate_percent(count, self.config)
            if self.session.advance(percent, self._report):
                logger.debug("flash_progress", percent=percent, write_events=count)

        return line

    def _report(self, percent: int) -> None:
        self.reporter.on_progress(percent, self.label)


def diagnostic_tail(session: FlashSession, lines: int) -> str:
    """Last lines of tool output joined for display, never empty."""
    tail = session.tail(lines)
    if not tail:
        return EMPTY_OUTPUT_PLACEHOLDER
    return "\n".join(tail)
