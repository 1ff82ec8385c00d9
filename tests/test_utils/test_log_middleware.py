"""Tests for OutputLogCaptureMiddleware."""

from serialflash.utils.log_middleware import OutputLogCaptureMiddleware


def test_lines_are_written_with_stream_type(tmp_path):
    log_path = tmp_path / "logs" / "flash.log"

    with OutputLogCaptureMiddleware(log_path, include_timestamps=False) as capture:
        assert capture.process("Writing at 0x1000", "stdout") == "Writing at 0x1000"
        capture.process("Warning: slow", "stderr")

    lines = log_path.read_text().splitlines()
    assert lines[0].startswith("# Flash Log - ")
    assert "[STDOUT] Writing at 0x1000" in lines
    assert "[STDERR] Warning: slow" in lines
    assert lines[-1].startswith("# Flash log completed - ")


def test_plain_lines(tmp_path):
    log_path = tmp_path / "flash.log"
    capture = OutputLogCaptureMiddleware(
        log_path, include_timestamps=False, include_stream_type=False
    )
    capture.process("Hash of data verified.", "stdout")
    capture.close()

    assert "Hash of data verified." in log_path.read_text().splitlines()


def test_timestamps_prefix_lines(tmp_path):
    log_path = tmp_path / "flash.log"
    with OutputLogCaptureMiddleware(log_path, include_stream_type=False) as capture:
        capture.process("Leaving...", "stdout")

    line = next(
        line for line in log_path.read_text().splitlines() if "Leaving" in line
    )
    assert line.startswith("[20")
    assert line.endswith("] Leaving...")


def test_unwritable_log_does_not_raise(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    capture = OutputLogCaptureMiddleware(blocker / "flash.log")

    assert capture.process("line", "stdout") == "line"
    capture.close()


def test_close_is_idempotent(tmp_path):
    capture = OutputLogCaptureMiddleware(tmp_path / "flash.log")
    capture.close()
    capture.close()
