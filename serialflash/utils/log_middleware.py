"""Log capture middleware for flashing tool output."""

import logging
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Any, TextIO

from serialflash.core.structlog_logger import get_struct_logger
from serialflash.utils.stream_process import OutputMiddleware


logger = get_struct_logger(__name__)


class OutputLogCaptureMiddleware(OutputMiddleware[str]):
    """Middleware that copies every output line of a process into a log file.

    Lines from stdout and stderr arrive on different threads, so writes are
    serialized with a lock. The line is returned unchanged for chaining.
    A log file that cannot be opened or written never fails the process
    being observed.
    """

    def __init__(
        self,
        log_file_path: Path,
        include_timestamps: bool = True,
        include_stream_type: bool = True,
    ) -> None:
        self.log_file_path = log_file_path
        self.include_timestamps = include_timestamps
        self.include_stream_type = include_stream_type
        self._file_handle: TextIO | None = None
        self._lock = Lock()
        self._initialize_log_file()

    def _initialize_log_file(self) -> None:
        try:
            self.log_file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_handle = self.log_file_path.open("w", encoding="utf-8")

            timestamp = datetime.now().isoformat()
            self._file_handle.write(f"# Flash Log - {timestamp}\n")
            self._file_handle.write("# Format: [timestamp] [stream] output\n\n")
            self._file_handle.flush()

            logger.debug("flash_log_opened", path=str(self.log_file_path))

        except OSError as e:
            exc_info = logger.isEnabledFor(logging.DEBUG)
            logger.error(
                "flash_log_open_failed",
                path=str(self.log_file_path),
                error=str(e),
                exc_info=exc_info,
            )
            self._file_handle = None

    def process(self, line: str, stream_type: str) -> str:
        if self._file_handle is None:
            return line

        parts = []
        if self.include_timestamps:
            parts.append(f"[{datetime.now().strftime('%Y-%m-%d %H:%M:%S.%f')[:-3]}]")
        if self.include_stream_type:
            parts.append("[STDOUT]" if stream_type == "stdout" else "[STDERR]")
        parts.append(line)

        try:
            with self._lock:
                if self._file_handle is not None:
                    self._file_handle.write(" ".join(parts) + "\n")
                    self._file_handle.flush()
        except OSError as e:
            logger.warning("flash_log_write_failed", error=str(e))

        return line

    def close(self) -> None:
        """Close the log file handle."""
        with self._lock:
            if self._file_handle is None:
                return
            try:
                self._file_handle.write(
                    f"\n# Flash log completed - {datetime.now().isoformat()}\n"
                )
                self._file_handle.close()
                logger.debug("flash_log_closed", path=str(self.log_file_path))
            except OSError as e:
                logger.warning("flash_log_close_failed", error=str(e))
            finally:
                self._file_handle = None

    def __enter__(self) -> "OutputLogCaptureMiddleware":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.close()
