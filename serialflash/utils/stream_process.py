"""Process execution and streaming output handling.

This module runs a subprocess and hands every line of its stdout and stderr
to a middleware object as soon as it is read. Both streams are read on
their own thread so a chatty stderr never stalls stdout (or the reverse).

Example:
    ```python
    from serialflash.utils.stream_process import run_command, OutputMiddleware

    class EchoMiddleware(OutputMiddleware[str]):
        def process(self, line: str, stream_type: str) -> str:
            print(f"[{stream_type}] {line}")
            return line

    return_code, stdout, stderr = run_command(["esptool.py", "version"], EchoMiddleware())
    ```
"""

import shlex
import subprocess
from collections.abc import Callable, Sequence
from threading import Thread
from typing import IO, Any, Generic, TypeAlias, TypeVar, cast


T = TypeVar("T")  # Type of processed output

# (return_code, stdout, stderr)
ProcessResult: TypeAlias = tuple[int, list[T], list[T]]

# Anything shaped like subprocess.Popen; tests inject fakes here
ProcessFactory: TypeAlias = Callable[..., Any]


class OutputMiddleware(Generic[T]):
    """Base class for processing command output streams.

    Implementations can format, filter, or transform output lines. Returning
    ``None`` from ``process`` drops the line from the captured output.
    """

    def process(self, line: str, stream_type: str) -> T:
        """Process a line of output from a subprocess stream.

        Args:
            line: A line of text from the process output, without line ending
            stream_type: Either "stdout" or "stderr"

        Raises:
            NotImplementedError: Subclasses must implement this method
        """
        raise NotImplementedError()


class PassthroughMiddleware(OutputMiddleware[str]):
    """Middleware that returns lines unchanged."""

    def process(self, line: str, stream_type: str) -> str:
        return line


class ChainedMiddleware(OutputMiddleware[str]):
    """Run several middlewares in order, feeding each the previous output.

    A middleware returning ``None`` stops the chain for that line.
    """

    def __init__(self, middlewares: Sequence[OutputMiddleware[str]]) -> None:
        self.middlewares = list(middlewares)

    def process(self, line: str, stream_type: str) -> str:
        current: str | None = line
        for middleware in self.middlewares:
            if current is None:
                break
            current = middleware.process(current, stream_type)
        return cast(str, current)


def create_chained_middleware(
    middlewares: Sequence[OutputMiddleware[str]],
) -> ChainedMiddleware:
    """Create a middleware that runs ``middlewares`` in sequence."""
    return ChainedMiddleware(middlewares)


def run_command(
    cmd: str | list[str],
    middleware: OutputMiddleware[T] | None = None,
    process_factory: ProcessFactory | None = None,
) -> ProcessResult[T]:
    """Run a command and process its output through middleware.

    The exit code is only returned after both reader threads finished, so
    every line the process wrote has been seen by the middleware.

    Args:
        cmd: Command to run, either as a string or list of arguments
        middleware: Optional middleware for processing output
        process_factory: Optional replacement for ``subprocess.Popen``

    Returns:
        Tuple containing the return code, processed stdout lines and
        processed stderr lines

    Raises:
        OSError: If the process cannot be started
    """
    if middleware is None:
        middleware = cast(OutputMiddleware[T], PassthroughMiddleware())

    if isinstance(cmd, str):
        cmd = shlex.split(cmd)

    popen = process_factory or subprocess.Popen
    process = popen(
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        bufsize=1,
        errors="replace",
    )

    def stream_output(stream: IO[str], stream_type: str, captured: list[T]) -> None:
        for line in iter(stream.readline, ""):
            processed = middleware.process(line.rstrip("\r\n"), stream_type)
            if processed is not None:
                captured.append(processed)
        stream.close()

    stdout_lines: list[T] = []
    stderr_lines: list[T] = []

    stdout_thread = Thread(
        target=stream_output, args=(process.stdout, "stdout", stdout_lines), daemon=True
    )
    stderr_thread = Thread(
        target=stream_output, args=(process.stderr, "stderr", stderr_lines), daemon=True
    )

    stdout_thread.start()
    stderr_thread.start()

    return_code = process.wait()

    stdout_thread.join()
    stderr_thread.join()

    return return_code, stdout_lines, stderr_lines
