"""Core test fixtures for the serialflash project."""

import io
import logging
import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from serialflash.config.models import FlashConfig, FlasherSettings
from serialflash.core.logging import configure_structlog
from serialflash.reporting.reporters import QueueReporter


@pytest.fixture(autouse=True, scope="session")
def configure_test_logging() -> None:
    """Route structlog through stdlib logging so isEnabledFor is available."""
    configure_structlog(log_level=logging.DEBUG)


# ---- Base Fixtures ----


@pytest.fixture
def cli_runner() -> CliRunner:
    """Return a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def reporter() -> QueueReporter:
    """Reporter that keeps every event for later inspection."""
    return QueueReporter()


# ---- Test Isolation Fixtures ----


@pytest.fixture
def isolated_env(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[Path, None, None]:
    """Run with no SERIALFLASH_* variables, an empty XDG config and cwd in tmp."""
    for name in list(os.environ):
        if name.upper().startswith("SERIALFLASH_"):
            monkeypatch.delenv(name)

    config_home = tmp_path / "xdg-config"
    config_home.mkdir()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.chdir(tmp_path)
    yield tmp_path


# ---- Firmware Fixtures ----


@pytest.fixture
def firmware_dir(tmp_path: Path) -> Path:
    """Build directory with application, bootloader and partition images."""
    build_dir = tmp_path / "build"
    build_dir.mkdir()
    (build_dir / "firmware.bin").write_bytes(b"\xe9" + b"\x00" * 255)
    (build_dir / "bootloader.bin").write_bytes(b"\xe9" + b"\x01" * 63)
    (build_dir / "partitions.bin").write_bytes(b"\xaa\x50" + b"\xff" * 30)
    return build_dir


@pytest.fixture
def tool_path(tmp_path: Path) -> Path:
    """A stand-in esptool.py that is never actually executed."""
    tool = tmp_path / "tools" / "esptool.py"
    tool.parent.mkdir()
    tool.write_text("# esptool placeholder\n")
    return tool


@pytest.fixture
def flasher_settings(
    isolated_env: Path, firmware_dir: Path, tool_path: Path
) -> FlasherSettings:
    """Settings pointing at the fixture firmware and tool, with no delays."""
    return FlasherSettings(
        flash=FlashConfig(
            firmware_dir=firmware_dir,
            tool_path=tool_path,
            python_executable="python3",
            settle_delay=0,
        )
    )


# ---- Fakes ----


class FakeSerialAdapter:
    """Serial adapter where only ``openable`` ports accept a probe."""

    def __init__(
        self,
        ports: list[str],
        openable: set[str] | None = None,
        list_error: Exception | None = None,
    ) -> None:
        self.ports = ports
        self.openable = openable or set()
        self.list_error = list_error
        self.probed: list[tuple[str, int, float]] = []

    def list_ports(self) -> list[str]:
        if self.list_error is not None:
            raise self.list_error
        return list(self.ports)

    def probe(self, port: str, baud: int, hold: float) -> None:
        self.probed.append((port, baud, hold))
        if port not in self.openable:
            raise OSError(f"could not open port {port}: [Errno 16] Device busy")


class FakeProcess:
    """Minimal Popen stand-in with canned output and exit code."""

    def __init__(self, stdout: str, stderr: str, return_code: int) -> None:
        self.stdout = io.StringIO(stdout)
        self.stderr = io.StringIO(stderr)
        self.returncode: int | None = None
        self._return_code = return_code

    def wait(self) -> int:
        self.returncode = self._return_code
        return self._return_code


class FakeProcessFactory:
    """Callable replacing subprocess.Popen; records every command."""

    def __init__(
        self,
        stdout: str = "",
        stderr: str = "",
        return_code: int = 0,
        error: Exception | None = None,
    ) -> None:
        self.stdout = stdout
        self.stderr = stderr
        self.return_code = return_code
        self.error = error
        self.commands: list[list[str]] = []
        self.kwargs: list[dict[str, Any]] = []

    def __call__(self, cmd: list[str], **kwargs: Any) -> FakeProcess:
        self.commands.append(list(cmd))
        self.kwargs.append(kwargs)
        if self.error is not None:
            raise self.error
        return FakeProcess(self.stdout, self.stderr, self.return_code)

    @property
    def call_count(self) -> int:
        return len(self.commands)


@pytest.fixture
def make_serial_adapter() -> Callable[..., FakeSerialAdapter]:
    """Factory for fake serial adapters."""
    return FakeSerialAdapter


@pytest.fixture
def make_process_factory() -> Callable[..., FakeProcessFactory]:
    """Factory for fake process factories."""
    return FakeProcessFactory


@pytest.fixture
def esptool_success_output() -> str:
    """Abridged esptool write_flash output with five write markers."""
    return "\n".join(
        [
            "esptool.py v4.7.0",
            "Serial port /dev/ttyUSB0",
            "Connecting....",
            "Chip is ESP32-D0WD-V3 (revision v3.0)",
            "Configuring flash size...",
            "Flash will be erased from 0x00001000 to 0x00007fff...",
            "Compressed 26144 bytes to 16248...",
            "Writing at 0x00001000... (100 %)",
            "Compressed 3072 bytes to 128...",
            "Writing at 0x00008000... (100 %)",
            "Compressed 812224 bytes to 524040...",
            "Writing at 0x00010000... (3 %)",
            "Writing at 0x00014000... (6 %)",
            "Writing at 0x00018000... (9 %)",
            "Wrote 812224 bytes (524040 compressed) at 0x00010000 in 12.1 seconds",
            "Hash of data verified.",
            "",
            "Leaving...",
            "Hard resetting via RTS pin...",
        ]
    ) + "\n"
