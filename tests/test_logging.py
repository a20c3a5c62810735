import json
import logging
from collections.abc import Sequence

import pytest

from qrbadge.logging import AUDIT, ConsoleFormatter, JsonFormatter, audit, get_logger, setup_logging, trace


class _LiveRecords(Sequence):
    """Read caplog.records lazily; pytest swaps the list between setup and call."""

    def __init__(self, caplog):
        self._caplog = caplog

    def __getitem__(self, index):
        return self._caplog.records[index]

    def __len__(self):
        return len(self._caplog.records)


@pytest.fixture
def records(caplog):
    caplog.set_level(logging.DEBUG, logger="qrbadge")
    return _LiveRecords(caplog)


def test_audit_record_carries_event(records):
    audit("badge.injected", logger=get_logger("test"), overlay_chars=12)
    record = records[-1]
    assert record.levelno == AUDIT
    assert record.event == "badge.injected"
    assert record.ctx == {"overlay_chars": 12}


def test_json_formatter(records):
    audit("qr.encoded", logger=get_logger("test"), span=41)
    entry = json.loads(JsonFormatter().format(records[-1]))
    assert entry["level"] == "AUDIT"
    assert entry["event"] == "qr.encoded"
    assert entry["ctx"] == {"span": 41}
    assert entry["src"] == "qrbadge.test"


def test_console_formatter(records):
    audit("raster.done", logger=get_logger("test"), png_bytes=1024)
    line = ConsoleFormatter().format(records[-1])
    assert "raster.done" in line
    assert "png_bytes=1024" in line


def test_trace_logs_enter_and_done(records):
    @trace(logger_name="test")
    def double(x):
        return "<svg>" + "x" * 200 * x

    double(1)
    events = [getattr(r, "event", None) for r in records]
    assert "double.enter" in events
    done = next(r for r in records if getattr(r, "event", None) == "double.done")
    assert done.ctx == {"result": "str[205]"}
    assert done.duration_ms >= 0


def test_trace_logs_errors(records):
    @trace(logger_name="test")
    def boom():
        raise ValueError("nope")

    with pytest.raises(ValueError):
        boom()
    error = next(r for r in records if getattr(r, "event", None) == "boom.error")
    assert error.levelno == logging.ERROR
    assert error.exc_info[0] is ValueError


def test_setup_logging_levels(tmp_path):
    log_file = tmp_path / "qrbadge.jsonl"
    try:
        setup_logging("audit", log_file=str(log_file))
        root = logging.getLogger("qrbadge")
        assert root.level == AUDIT
        assert len(root.handlers) == 2
        audit("cli.start", logger=get_logger("test"), command="render")
        for handler in root.handlers:
            handler.flush()
        entry = json.loads(log_file.read_text().splitlines()[-1])
        assert entry["event"] == "cli.start"
    finally:
        for handler in logging.getLogger("qrbadge").handlers:
            handler.close()
        logging.getLogger("qrbadge").handlers.clear()
        logging.getLogger("qrbadge").setLevel(logging.NOTSET)
