"""Tests for diagnostics — crash handler and structured logging."""

import json
import logging
import os
import stat
import sys
import time
from unittest.mock import patch

import pytest

from diagnostics import (
    JSONFormatter,
    MAX_CRASH_REPORTS,
    _cleanup_old_crash_reports,
    _validate_log_dir,
    setup_excepthook,
    setup_structured_logging,
    write_crash_report,
)

pytestmark = pytest.mark.smoke


def _exc_info(message="test crash"):
    try:
        raise ValueError(message)
    except ValueError:
        return sys.exc_info()


def test_json_formatter_fields():
    record = logging.LogRecord("audio.waveform", logging.INFO, __file__, 1, "hello %s", ("x",), None)
    entry = json.loads(JSONFormatter().format(record))
    assert entry["level"] == "INFO"
    assert entry["logger"] == "audio.waveform"
    assert entry["message"] == "hello x"
    assert "timestamp" in entry
    assert "exception" not in entry


def test_json_formatter_exception():
    record = logging.LogRecord("main", logging.ERROR, __file__, 1, "boom", (), _exc_info())
    entry = json.loads(JSONFormatter().format(record))
    assert entry["exception"]["type"] == "ValueError"
    assert "test crash" in entry["exception"]["traceback"]


def test_default_log_dir(isolated_home):
    assert _validate_log_dir("") == str(isolated_home / ".wavedown" / "logs")


def test_log_dir_inside_app_dir_accepted(isolated_home):
    custom = isolated_home / ".wavedown" / "custom"
    assert _validate_log_dir(str(custom)) == os.path.realpath(custom)


def test_log_dir_outside_app_dir_rejected(isolated_home, tmp_path):
    assert _validate_log_dir(str(tmp_path / "elsewhere")) == str(isolated_home / ".wavedown" / "logs")


def test_setup_creates_private_log_dir(isolated_home):
    log_dir = setup_structured_logging()
    assert log_dir == str(isolated_home / ".wavedown" / "logs")
    mode = stat.S_IMODE(os.stat(log_dir).st_mode)
    assert mode & 0o077 == 0

    logging.getLogger("test").warning("written")
    lines = (isolated_home / ".wavedown" / "logs" / "wavedown.log").read_text().splitlines()
    assert json.loads(lines[-1])["message"] == "written"


def test_setup_reads_env(isolated_home, monkeypatch):
    custom = isolated_home / ".wavedown" / "env-logs"
    monkeypatch.setenv("WAVEDOWN_LOG_DIR", str(custom))
    monkeypatch.setenv("WAVEDOWN_LOG_LEVEL", "debug")
    assert setup_structured_logging() == os.path.realpath(custom)
    assert logging.getLogger().level == logging.DEBUG


def test_setup_twice_adds_one_handler(isolated_home):
    before = len(logging.getLogger().handlers)
    setup_structured_logging()
    setup_structured_logging()
    assert len(logging.getLogger().handlers) == before + 1


def test_old_logs_removed(isolated_home):
    log_dir = isolated_home / ".wavedown" / "logs"
    log_dir.mkdir(parents=True)
    stale = log_dir / "wavedown.log.3"
    stale.write_text("{}")
    old = time.time() - 30 * 86400
    os.utime(stale, (old, old))
    setup_structured_logging()
    assert not stale.exists()


def test_crash_report_written(tmp_path):
    crash_dir = tmp_path / "crash_reports"
    path = write_crash_report(*_exc_info(), str(crash_dir))
    data = json.loads(path.read_text())
    assert data["exception_type"] == "ValueError"
    assert data["exception_message"] == "test crash"
    assert any("test crash" in line for line in data["traceback"])
    assert stat.S_IMODE(os.stat(path).st_mode) & 0o077 == 0


def test_crash_report_strips_paths(tmp_path):
    crash_dir = tmp_path / "crash_reports"
    with patch.object(sys, "argv", ["wavedown", "/home/someone/secret.pcm", "-s", "10"]):
        path = write_crash_report(*_exc_info("cannot read /home/someone/secret.pcm"), str(crash_dir))
    text = path.read_text()
    assert "someone" not in text
    assert "<REDACTED_PATH>" in text


def test_crash_reports_pruned(tmp_path):
    crash_dir = tmp_path / "crash_reports"
    crash_dir.mkdir()
    now = time.time()
    for i in range(MAX_CRASH_REPORTS + 3):
        f = crash_dir / f"crash_2026010{i}T000000Z.json"
        f.write_text("{}")
        os.utime(f, (now - i * 60, now - i * 60))
    _cleanup_old_crash_reports(str(crash_dir))
    remaining = sorted(p.name for p in crash_dir.glob("crash_*.json"))
    assert len(remaining) == MAX_CRASH_REPORTS
    assert "crash_20260100T000000Z.json" in remaining


def test_excepthook_writes_crash_and_delegates(isolated_home):
    setup_excepthook()
    with patch("sys.__excepthook__") as default_hook:
        sys.excepthook(*_exc_info())
    default_hook.assert_called_once()
    reports = list((isolated_home / ".wavedown" / "crash_reports").glob("crash_*.json"))
    assert len(reports) == 1


def test_excepthook_survives_write_failure(isolated_home, capsys):
    setup_excepthook()
    with patch("diagnostics.write_crash_report", side_effect=OSError("disk full")):
        with patch("sys.__excepthook__") as default_hook:
            sys.excepthook(*_exc_info())
    default_hook.assert_called_once()
    assert "could not write crash report" in capsys.readouterr().err


def test_unusable_home_disables_file_logging(isolated_home, monkeypatch, capsys):
    home_file = isolated_home / "not_a_dir"
    home_file.write_text("")
    monkeypatch.setenv("HOME", str(home_file))
    before = len(logging.getLogger().handlers)
    assert setup_structured_logging() is None
    assert len(logging.getLogger().handlers) == before
    assert "wavedown: warning: file logging disabled" in capsys.readouterr().err


def test_crash_reports_in_same_instant_kept_apart(tmp_path):
    crash_dir = tmp_path / "crash_reports"
    with patch("diagnostics.datetime") as fake_datetime:
        fake_datetime.datetime.now.return_value.strftime.return_value = "20260101T000000.000000Z"
        first = write_crash_report(*_exc_info("first"), str(crash_dir))
        second = write_crash_report(*_exc_info("second"), str(crash_dir))
    assert first != second
    assert json.loads(first.read_text())["exception_message"] == "first"
    assert json.loads(second.read_text())["exception_message"] == "second"
