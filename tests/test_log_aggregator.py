import threading

import pytest

from depotpilot.models.tasks import LogEntry, StreamKind
from depotpilot.services.tasks import LogAggregator


def test_append_preserves_order_and_assigns_sequence() -> None:
    aggregator = LogAggregator(capacity=10)
    for i in range(3):
        aggregator.info(f"line {i}")

    entries = aggregator.snapshot()
    assert [e.message for e in entries] == ["line 0", "line 1", "line 2"]
    assert [e.seq for e in entries] == [1, 2, 3]
    assert aggregator.cursor == 3


def test_capacity_evicts_oldest_entries() -> None:
    aggregator = LogAggregator(capacity=3)
    for i in range(5):
        aggregator.info(f"line {i}")

    assert len(aggregator) == 3
    assert [e.message for e in aggregator.snapshot()] == ["line 2", "line 3", "line 4"]


def test_snapshot_is_caller_owned() -> None:
    aggregator = LogAggregator(capacity=5)
    aggregator.info("first")
    snapshot = aggregator.snapshot()
    snapshot.clear()
    aggregator.info("second")

    assert len(aggregator.snapshot()) == 2


def test_since_returns_only_newer_entries() -> None:
    aggregator = LogAggregator(capacity=5)
    aggregator.info("old")
    cursor = aggregator.cursor
    aggregator.warning("new")
    aggregator.error("newer")

    newer = aggregator.since(cursor)
    assert [(e.stream, e.message) for e in newer] == [(StreamKind.WARNING, "new"), (StreamKind.ERROR, "newer")]
    assert aggregator.since(aggregator.cursor) == []


def test_duplicates_are_kept() -> None:
    aggregator = LogAggregator(capacity=5)
    aggregator.append(LogEntry(message="same"))
    aggregator.append(LogEntry(message="same"))

    assert len(aggregator) == 2


def test_render_includes_task_and_stream() -> None:
    entry = LogEntry(task_id=7, stream=StreamKind.VERBOSE, message="Downloading sp12345.exe")
    rendered = entry.render()

    assert "[Task 7]" in rendered
    assert "[VERBOSE]" in rendered
    assert rendered.endswith("Downloading sp12345.exe")


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        LogAggregator(capacity=0)


def test_read_returns_entries_and_cursor_together() -> None:
    aggregator = LogAggregator(capacity=5000)
    stop = threading.Event()

    def writer() -> None:
        for i in range(2000):
            aggregator.info(f"line {i}")
        stop.set()

    thread = threading.Thread(target=writer)
    thread.start()
    mismatches = 0
    while not stop.is_set():
        entries, cursor = aggregator.read()
        if entries and entries[-1].seq != cursor:
            mismatches += 1
    thread.join()

    assert mismatches == 0
    entries, cursor = aggregator.read(1995)
    assert [e.seq for e in entries] == [1996, 1997, 1998, 1999, 2000]
    assert cursor == 2000
    assert aggregator.read(cursor) == ([], 2000)
