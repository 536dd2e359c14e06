from __future__ import annotations

import json
import logging
import re
from datetime import date
from pathlib import Path

import pytest

from order_poller.sinks.rotating_log import DailySizeRotatingFileHandler, NullSink, RotatingLogSink

_ENTRY_HEAD = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{3}: INFO - ", re.M)


class _Calendar:
    def __init__(self, day: date) -> None:
        self.day = day

    def __call__(self) -> date:
        return self.day


@pytest.fixture
def calendar() -> _Calendar:
    return _Calendar(date(2025, 3, 14))


def _entries(path: Path) -> list[list]:
    text = path.read_text(encoding="utf-8")
    bodies = _ENTRY_HEAD.split(text)[1:]
    return [json.loads(b) for b in bodies]


def test_writes_land_in_date_partition(tmp_path: Path, calendar: _Calendar):
    sink = RotatingLogSink("velora-order", root=tmp_path, today=calendar)
    records = [{"orderHash": "0x1", "makerAmount": "1000"}, {"orderHash": "0x2", "makerAmount": "5"}]

    sink.write(records)
    sink.close()

    path = tmp_path / "2025-03-14" / "velora-order.log"
    assert sink.path == path
    assert path.exists()
    assert _entries(path) == [records]
    text = path.read_text(encoding="utf-8")
    assert text.endswith("\n\n\n")
    assert '  {\n    "orderHash": "0x1"' in text


def test_every_write_appends_one_entry_including_empty(tmp_path: Path, calendar: _Calendar):
    sink = RotatingLogSink("one-inch-fusion-order", root=tmp_path, today=calendar)

    sink.write([{"a": 1}])
    sink.write([])
    sink.write([{"a": 2}, {"a": 3}])
    sink.close()

    entries = _entries(tmp_path / "2025-03-14" / "one-inch-fusion-order.log")
    assert entries == [[{"a": 1}], [], [{"a": 2}, {"a": 3}]]


def test_new_day_opens_new_partition(tmp_path: Path, calendar: _Calendar):
    sink = RotatingLogSink("uniswapx-duch-order", root=tmp_path, today=calendar)
    sink.write([{"day": 1}])
    calendar.day = date(2025, 3, 15)
    sink.write([{"day": 2}])
    sink.close()

    assert _entries(tmp_path / "2025-03-14" / "uniswapx-duch-order.log") == [[{"day": 1}]]
    assert _entries(tmp_path / "2025-03-15" / "uniswapx-duch-order.log") == [[{"day": 2}]]


def test_rolls_over_when_partition_exceeds_max_bytes(tmp_path: Path, calendar: _Calendar):
    sink = RotatingLogSink("big", root=tmp_path, max_bytes=256, backup_count=10, today=calendar)
    payload = [{"blob": "x" * 120}]

    for _ in range(4):
        sink.write(payload)
    sink.close()

    day = tmp_path / "2025-03-14"
    assert (day / "big.log").exists()
    assert (day / "big.log.1").exists()
    files = sorted(day.iterdir())
    total = sum(len(_entries(f)) for f in files)
    assert total == 4


def test_snapshots_do_not_reach_the_operator_channel(tmp_path: Path, calendar: _Calendar, caplog):
    sink = RotatingLogSink("quiet", root=tmp_path, today=calendar)
    with caplog.at_level(logging.DEBUG):
        sink.write([{"secret": "payload"}])
    sink.close()
    assert not any("payload" in r.getMessage() for r in caplog.records)


def test_unwritable_root_degrades_to_noop(tmp_path: Path, calendar: _Calendar, caplog):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file in the way", encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        sink = RotatingLogSink("broken", root=blocker, today=calendar)
    assert sink.degraded
    assert sink.path is None
    assert any(r.getMessage() == "sink.init_error" for r in caplog.records)

    sink.write([{"a": 1}])
    sink.write([])
    sink.close()


def test_unwritable_new_day_partition_reports_each_dropped_write(
    tmp_path: Path, calendar: _Calendar, caplog, capsys
):
    sink = RotatingLogSink("velora-order", root=tmp_path, today=calendar)
    sink.write([{"day": 1}])
    (tmp_path / "2025-03-15").write_text("file in the way", encoding="utf-8")
    calendar.day = date(2025, 3, 15)

    with caplog.at_level(logging.WARNING):
        sink.write([{"day": 2}])
        sink.write([])
    sink.close()

    failures = [r for r in caplog.records if r.getMessage() == "sink.write_error"]
    assert len(failures) == 2
    assert all(r.context["category"] == "sink_health" for r in failures)
    assert all(r.context["sink"] == "velora-order" for r in failures)
    assert "Logging error" not in capsys.readouterr().err
    assert _entries(tmp_path / "2025-03-14" / "velora-order.log") == [[{"day": 1}]]


def test_handler_passes_storage_errors_to_callback(tmp_path: Path, calendar: _Calendar):
    seen: list[BaseException] = []
    handler = DailySizeRotatingFileHandler(tmp_path, "x.log", today=calendar, on_error=seen.append)
    (tmp_path / "2025-03-15").write_text("file in the way", encoding="utf-8")
    calendar.day = date(2025, 3, 15)

    handler.emit(logging.makeLogRecord({"msg": "snapshot"}))
    handler.close()

    assert len(seen) == 1
    assert isinstance(seen[0], OSError)


def test_unserializable_write_is_dropped(tmp_path: Path, calendar: _Calendar, caplog):
    sink = RotatingLogSink("odd", root=tmp_path, today=calendar)

    class Loop(dict):
        pass

    loop = Loop()
    loop["self"] = loop

    with caplog.at_level(logging.WARNING):
        sink.write([loop])
    sink.write([{"ok": True}])
    sink.close()

    assert any(r.getMessage() == "sink.write_error" for r in caplog.records)
    assert _entries(tmp_path / "2025-03-14" / "odd.log") == [[{"ok": True}]]


def test_recreating_a_sink_does_not_duplicate_entries(tmp_path: Path, calendar: _Calendar):
    RotatingLogSink("dup", root=tmp_path, today=calendar)
    sink = RotatingLogSink("dup", root=tmp_path, today=calendar)
    sink.write([{"once": True}])
    sink.close()
    assert _entries(tmp_path / "2025-03-14" / "dup.log") == [[{"once": True}]]


def test_handler_rejects_non_positive_size(tmp_path: Path):
    with pytest.raises(ValueError):
        DailySizeRotatingFileHandler(tmp_path, "x.log", max_bytes=0)


def test_null_sink_accepts_anything():
    sink = NullSink("void")
    assert sink.write([{"a": 1}]) is None
    assert sink.write([]) is None
