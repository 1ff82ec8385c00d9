"""Flash session state management."""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from threading import Lock

from serialflash.core.errors import InvalidTransitionError
from serialflash.firmware.models import FlashState


_ACTIVE_STATES = (
    FlashState.PREPARING,
    FlashState.TOOLCHAIN_CHECK,
    FlashState.LAUNCHING,
    FlashState.STREAMING,
)

TRANSITIONS: dict[FlashState, frozenset[FlashState]] = {
    FlashState.IDLE: frozenset({FlashState.PREPARING}),
    FlashState.PREPARING: frozenset({FlashState.TOOLCHAIN_CHECK, FlashState.FAILED}),
    FlashState.TOOLCHAIN_CHECK: frozenset({FlashState.LAUNCHING, FlashState.FAILED}),
    FlashState.LAUNCHING: frozenset({FlashState.STREAMING, FlashState.FAILED}),
    FlashState.STREAMING: frozenset({FlashState.SUCCEEDED, FlashState.FAILED}),
    FlashState.SUCCEEDED: frozenset({FlashState.IDLE}),
    FlashState.FAILED: frozenset({FlashState.IDLE}),
}


@dataclass
class FlashSession:
    """State of the current (or most recent) flash session."""

    state: FlashState = FlashState.IDLE
    percent: int = 0
    port: str | None = None
    last_detail: str | None = None
    write_events: int = 0
    output: list[str] = field(default_factory=list)
    start_time: float = field(default_factory=time.monotonic)

    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)
    _progress_lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    @property
    def is_active(self) -> bool:
        """True while a session is between Preparing and a terminal state."""
        return self.state in _ACTIVE_STATES

    @property
    def elapsed_time(self) -> float:
        return time.monotonic() - self.start_time

    def transition(self, target: FlashState) -> None:
        """Move to ``target``.

        Raises:
            InvalidTransitionError: If ``target`` is not reachable from the
                current state
        """
        with self._lock:
            if target not in TRANSITIONS[self.state]:
                raise InvalidTransitionError(self.state.value, target.value)
            self.state = target

    def begin(self, port: str) -> None:
        """Start a new session on ``port``, clearing the previous one."""
        with self._lock:
            if self.state is not FlashState.IDLE:
                raise InvalidTransitionError(
                    self.state.value, FlashState.PREPARING.value
                )
            self.state = FlashState.PREPARING
            self.percent = 0
            self.port = port
            self.last_detail = None
            self.write_events = 0
            self.output = []
            self.start_time = time.monotonic()

    def advance(
        self, percent: int, on_advance: Callable[[int], None] | None = None
    ) -> bool:
        """Raise the percentage to ``percent``.

        ``on_advance`` is called with the new value before any other thread
        can advance the session, so values it sees never decrease.

        Returns:
            True if the percentage changed, False if ``percent`` is not
            above the current value
        """
        with self._progress_lock:
            with self._lock:
                percent = min(percent, 100)
                if percent <= self.percent:
                    return False
                self.percent = percent
            if on_advance is not None:
                on_advance(percent)
            return True

    def record_line(self, line: str, is_write_event: bool) -> int:
        """Append a tool output line, returning the write event count."""
        with self._lock:
            self.output.append(line)
            if is_write_event:
                self.write_events += 1
            return self.write_events

    def tail(self, lines: int) -> list[str]:
        """Last ``lines`` non-blank lines of tool output."""
        with self._lock:
            meaningful = [line for line in self.output if line.strip()]
        return meaningful[-lines:]
