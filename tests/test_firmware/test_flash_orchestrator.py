"""Tests for FlashOrchestrator."""

import threading
import time
from unittest.mock import Mock, patch

import pytest

from serialflash.config.models import FlasherSettings
from serialflash.firmware.flash.progress import EMPTY_OUTPUT_PLACEHOLDER
from serialflash.firmware.flash.service import (
    FlashOrchestrator,
    create_flash_orchestrator,
)
from serialflash.firmware.models import (
    DetectedDevice,
    FailureKind,
    FlashOutcome,
    FlashState,
)
from serialflash.reporting.events import ProgressEvent, Severity, StatusEvent


@pytest.fixture
def device():
    return DetectedDevice(port="/dev/ttyUSB0", probe_baud=115200)


def progress_values(events):
    return [e.percent for e in events if isinstance(e, ProgressEvent)]


def statuses(events):
    return [(e.text, e.severity) for e in events if isinstance(e, StatusEvent)]


def details(events):
    return [e.text for e in events if e.kind == "detail"]


class TestSuccessfulFlash:
    """Sessions where the flashing tool exits with 0."""

    def test_exit_zero_succeeds_with_full_progress(
        self, flasher_settings, reporter, make_process_factory, device
    ):
        factory = make_process_factory(stdout="Hash of data verified.\n")
        orchestrator = FlashOrchestrator(flasher_settings, reporter, factory)

        outcome = orchestrator.flash(device)

        assert isinstance(outcome, FlashOutcome)
        assert outcome.success is True
        assert outcome.state == FlashState.SUCCEEDED
        assert outcome.port == "/dev/ttyUSB0"
        assert outcome.failure is None

        events = reporter.get_events()
        percents = progress_values(events)
        assert percents[-1] == 100
        assert ("Firmware flashed successfully!", Severity.SUCCESS) in statuses(
            events
        )
        assert details(events)[-1] == "ESP32 is rebooting...\nDevice ready for use."

    def test_five_markers_then_exit_zero(
        self,
        flasher_settings,
        reporter,
        make_process_factory,
        device,
        esptool_success_output,
    ):
        factory = make_process_factory(stdout=esptool_success_output)
        orchestrator = FlashOrchestrator(flasher_settings, reporter, factory)

        outcome = orchestrator.flash(device)

        assert outcome is not None and outcome.success
        assert orchestrator.session.write_events == 5
        percents = progress_values(reporter.get_events())
        # 30 + 1.5 * n for n = 1..5, truncated
        assert percents == [5, 10, 20, 30, 31, 33, 34, 36, 37, 100]

    def test_progress_never_decreases_and_starts_low(
        self,
        flasher_settings,
        reporter,
        make_process_factory,
        device,
        esptool_success_output,
    ):
        factory = make_process_factory(
            stdout=esptool_success_output, stderr="Warning: something\n"
        )
        FlashOrchestrator(flasher_settings, reporter, factory).flash(device)

        percents = progress_values(reporter.get_events())
        assert percents[0] <= 10
        assert percents == sorted(percents)

    def test_progress_stays_ordered_with_markers_on_both_streams(
        self, flasher_settings, make_process_factory, device
    ):
        recorded = []

        class SlowSink:
            def on_status(self, text, severity):
                pass

            def on_detail(self, text):
                pass

            def on_progress(self, percent, label):
                if percent == 31:
                    time.sleep(0.3)
                recorded.append(percent)

        factory = make_process_factory(
            stdout="Writing at 0x00001000... (50 %)\n",
            stderr="Writing at 0x00002000... (100 %)\n",
        )

        outcome = FlashOrchestrator(flasher_settings, SlowSink(), factory).flash(
            device
        )

        assert outcome is not None and outcome.success
        assert recorded == sorted(recorded)
        assert recorded[-1] == 100

    def test_progress_capped_below_100_while_running(
        self, flasher_settings, reporter, make_process_factory, device
    ):
        markers = "".join(f"Writing at 0x{i:08x}... \n" for i in range(200))
        factory = make_process_factory(stdout=markers, return_code=1)

        outcome = FlashOrchestrator(flasher_settings, reporter, factory).flash(device)

        assert outcome is not None and not outcome.success
        percents = progress_values(reporter.get_events())
        assert max(percents) == 95
        assert 100 not in percents

    def test_command_passed_to_process(
        self, flasher_settings, make_process_factory, device, firmware_dir, tool_path
    ):
        factory = make_process_factory()
        FlashOrchestrator(flasher_settings, process_factory=factory).flash(device)

        assert factory.call_count == 1
        command = factory.commands[0]
        assert command[:2] == ["python3", str(tool_path.resolve())]
        assert command[command.index("--port") + 1] == "/dev/ttyUSB0"
        assert command[-2:] == ["0x10000", str((firmware_dir / "firmware.bin").resolve())]
        assert factory.kwargs[0]["text"] is True


class TestFailedFlash:
    """Sessions that end in Failed."""

    def test_missing_firmware_spawns_nothing(
        self, flasher_settings, reporter, make_process_factory, device, firmware_dir
    ):
        (firmware_dir / "firmware.bin").unlink()
        factory = make_process_factory()

        outcome = FlashOrchestrator(flasher_settings, reporter, factory).flash(device)

        assert outcome is not None
        assert outcome.failure is not None
        assert outcome.failure.kind == FailureKind.MISSING_ARTIFACT
        assert factory.call_count == 0

        events = reporter.get_events()
        assert ("Error: Firmware file not found", Severity.ERROR) in statuses(events)
        assert details(events)[-1].startswith(
            "Please build the firmware first.\nExpected: "
        )
        assert 100 not in progress_values(events)

    def test_missing_tool_spawns_nothing(
        self, flasher_settings, reporter, make_process_factory, device, tool_path
    ):
        tool_path.unlink()
        factory = make_process_factory()

        outcome = FlashOrchestrator(flasher_settings, reporter, factory).flash(device)

        assert outcome is not None and outcome.failure is not None
        assert outcome.failure.kind == FailureKind.MISSING_TOOLCHAIN
        assert factory.call_count == 0

        events = reporter.get_events()
        assert ("Error: esptool.py not found", Severity.ERROR) in statuses(events)
        assert details(events)[-1] == "Please ensure PlatformIO is installed."

    def test_nonzero_exit_carries_code_and_tail(
        self, flasher_settings, reporter, make_process_factory, device
    ):
        factory = make_process_factory(
            stdout=(
                "esptool.py v4.7.0\n"
                "Serial port /dev/ttyUSB0\n"
                "Connecting......\n"
                "\n"
                "A fatal error occurred: Failed to connect to ESP32\n"
            ),
            return_code=2,
        )

        outcome = FlashOrchestrator(flasher_settings, reporter, factory).flash(device)

        assert outcome is not None and outcome.failure is not None
        failure = outcome.failure
        assert failure.kind == FailureKind.NON_ZERO_EXIT
        assert failure.exit_code == 2
        assert failure.diagnostic_tail
        assert len(failure.diagnostic_tail.splitlines()) == 3
        assert "A fatal error occurred" in failure.diagnostic_tail

        events = reporter.get_events()
        assert ("Flashing failed", Severity.ERROR) in statuses(events)
        assert details(events)[-1].startswith("Error code: 2\n")
        assert 100 not in progress_values(events)

    def test_nonzero_exit_without_output_uses_placeholder(
        self, flasher_settings, make_process_factory, device
    ):
        factory = make_process_factory(return_code=1)

        outcome = FlashOrchestrator(flasher_settings, process_factory=factory).flash(
            device
        )

        assert outcome is not None and outcome.failure is not None
        assert outcome.failure.diagnostic_tail == EMPTY_OUTPUT_PLACEHOLDER

    def test_spawn_error_becomes_unexpected_exception(
        self, flasher_settings, reporter, make_process_factory, device
    ):
        factory = make_process_factory(error=OSError("Exec format error"))

        outcome = FlashOrchestrator(flasher_settings, reporter, factory).flash(device)

        assert outcome is not None and outcome.failure is not None
        assert outcome.failure.kind == FailureKind.UNEXPECTED_EXCEPTION
        assert outcome.failure.message == "Exec format error"

        events = reporter.get_events()
        assert ("Error during flash process", Severity.ERROR) in statuses(events)
        assert details(events)[-1] == "Exception: Exec format error"

    def test_failing_reporter_does_not_fail_session(
        self, flasher_settings, make_process_factory, device
    ):
        broken = Mock()
        broken.on_progress.side_effect = RuntimeError("display gone")

        outcome = FlashOrchestrator(
            flasher_settings, broken, make_process_factory()
        ).flash(device)

        assert outcome is not None and outcome.success


class TestSessionLifecycle:
    """Single-session guard and return to Idle."""

    def test_returns_to_idle_after_settle_delay(
        self, flasher_settings, make_process_factory, device
    ):
        settings = flasher_settings.model_copy(
            update={
                "flash": flasher_settings.flash.model_copy(update={"settle_delay": 3.0})
            }
        )
        sleep = Mock()
        orchestrator = FlashOrchestrator(
            settings, process_factory=make_process_factory(), sleep=sleep
        )

        orchestrator.flash(device)

        sleep.assert_called_once_with(3.0)
        assert orchestrator.session.state == FlashState.IDLE
        assert not orchestrator.is_active

    def test_second_flash_while_active_is_ignored(
        self, flasher_settings, reporter, make_process_factory, device
    ):
        release = threading.Event()
        entered = threading.Event()

        def slow_sleep(seconds):
            entered.set()
            release.wait(5)

        settings = flasher_settings.model_copy(
            update={
                "flash": flasher_settings.flash.model_copy(update={"settle_delay": 1.0})
            }
        )
        factory = make_process_factory()
        orchestrator = FlashOrchestrator(settings, reporter, factory, sleep=slow_sleep)

        results = []
        worker = threading.Thread(
            target=lambda: results.append(orchestrator.flash(device))
        )
        worker.start()
        assert entered.wait(5)

        assert orchestrator.is_active
        state_before = orchestrator.session.state
        percent_before = orchestrator.session.percent
        assert orchestrator.flash(device) is None
        assert orchestrator.session.state == state_before
        assert orchestrator.session.percent == percent_before

        release.set()
        worker.join(5)

        assert factory.call_count == 1
        assert len(results) == 1 and results[0].success
        assert orchestrator.flash(device) is not None
        assert factory.call_count == 2

    def test_error_after_success_keeps_success_outcome(
        self, flasher_settings, reporter, make_process_factory, device
    ):
        orchestrator = FlashOrchestrator(
            flasher_settings, reporter, make_process_factory()
        )
        report_detail = orchestrator._report_detail

        def fail_on_reboot_notice(text):
            if text.startswith("ESP32 is rebooting"):
                raise RuntimeError("late failure")
            report_detail(text)

        with patch.object(
            orchestrator, "_report_detail", side_effect=fail_on_reboot_notice
        ):
            outcome = orchestrator.flash(device)

        assert outcome is not None
        assert outcome.success is True
        assert outcome.state == FlashState.SUCCEEDED
        assert orchestrator.session.percent == 100
        assert ("Error during flash process", Severity.ERROR) not in statuses(
            reporter.get_events()
        )

    def test_sessions_are_independent(
        self, flasher_settings, make_process_factory, device
    ):
        orchestrator = FlashOrchestrator(
            flasher_settings, process_factory=make_process_factory(return_code=3)
        )
        first = orchestrator.flash(device)
        orchestrator.process_factory = make_process_factory()
        second = orchestrator.flash(device)

        assert first is not None and not first.success
        assert second is not None and second.success


class TestOutputLog:
    def test_tool_output_written_to_log_file(
        self, flasher_settings, make_process_factory, device, tmp_path
    ):
        log_path = tmp_path / "logs" / "flash.log"
        settings = flasher_settings.model_copy(
            update={
                "flash": flasher_settings.flash.model_copy(
                    update={"log_output": log_path}
                )
            }
        )
        factory = make_process_factory(stdout="Writing at 0x00010000... (100 %)\n")

        FlashOrchestrator(settings, process_factory=factory).flash(device)

        content = log_path.read_text()
        assert "[STDOUT] Writing at 0x00010000... (100 %)" in content
        assert "# Flash log completed" in content


def test_firmware_dir_defaults_to_build_tree(isolated_env, tmp_path):
    exe_dir = tmp_path / "dist" / "flasher"
    exe_dir.mkdir(parents=True)
    orchestrator = create_flash_orchestrator(
        settings=FlasherSettings(), executable_dir=exe_dir
    )

    expected = (
        tmp_path / "dist" / "esp32-controller" / ".pio" / "build" / "esp32dev"
    ).resolve()
    assert orchestrator.firmware_dir() == expected
