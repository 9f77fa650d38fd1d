"""Unit tests for utility modules."""

import json
import sys
import time

import pytest
from core.errors import ConfigError
from utils import crash
from utils.ksuid import generate_ksuid
from utils.timestamp import elapsed_ms, format_timestamp, now_micros


class TestKSUID:
    """Tests for KSUID generation."""

    def test_generate_ksuid_length(self):
        ksuid = generate_ksuid()
        assert isinstance(ksuid, str)
        assert len(ksuid) == 27

    def test_generate_ksuid_unique(self):
        ksuids = [generate_ksuid() for _ in range(100)]
        assert len(set(ksuids)) == 100

    def test_sortable_by_second(self):
        assert generate_ksuid(now=1700000001) > generate_ksuid(now=1700000000)


class TestTimestamp:
    """Tests for timestamp utilities."""

    def test_format_timestamp_iso_format(self):
        assert format_timestamp(0) == "1970-01-01T00:00:00.000000Z"

    def test_format_timestamp_has_microseconds(self):
        decimal_part = format_timestamp().split(".")[1].rstrip("Z")
        assert len(decimal_part) == 6

    def test_now_micros_reasonable_value(self):
        micros = now_micros()
        assert isinstance(micros, int)
        assert micros > 1577836800000000  # 2020-01-01

    def test_elapsed_ms(self):
        started = time.perf_counter()
        assert elapsed_ms(started) >= 0


class TestCrashHandler:
    """Tests for crash handling utilities."""

    @pytest.fixture
    def crash_file(self, tmp_path):
        original = crash._crash_log
        path = tmp_path / "logs" / "crash.log"
        crash.configure(str(path))
        yield path
        crash.configure(original)

    def test_configure_sets_path(self, crash_file):
        assert crash._crash_log == str(crash_file)

    def test_install_crash_handler(self, monkeypatch):
        monkeypatch.setattr(sys, "excepthook", sys.__excepthook__)
        crash.install_crash_handler()
        assert sys.excepthook == crash.log_crash

    def test_log_crash_writes_record(self, crash_file, capsys):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            crash_id = crash.log_crash(*sys.exc_info())
        record = json.loads(crash_file.read_text().splitlines()[-1])
        assert record["id"] == crash_id
        assert record["type"] == "RuntimeError"
        assert record["msg"] == "boom"
        assert "CRASH" in capsys.readouterr().err

    def test_sim_error_keeps_tracking_id(self, crash_file, capsys):
        error = ConfigError("surface section is required", field="surface")
        crash_id = crash.log_crash(ConfigError, error, None)
        record = json.loads(crash_file.read_text().splitlines()[-1])
        assert crash_id == error.error_id
        assert record["context"] == {"field": "surface"}

    def test_async_handler(self, crash_file):
        handler = crash.create_async_handler()
        handler(None, {"exception": ValueError("bad tick"), "message": "task failed"})
        record = json.loads(crash_file.read_text().splitlines()[-1])
        assert record["type"] == "ValueError"
        assert record["msg"] == "bad tick"
