"""Tests for mew.observability — live-reload event recording."""

import pytest

from mew.observability.collector import StackCollector
from mew.observability.events import (
    ClientConnected,
    ClientDisconnected,
    FileChanged,
    ReloadBroadcast,
    now_ns,
)
from mew.observability.log import EventLog


def _connected(n: int = 1, ts: int | None = None) -> ClientConnected:
    return ClientConnected(client_id=f"c{n}", clients=n, timestamp_ns=ts if ts is not None else now_ns())


# ---------------------------------------------------------------------------
# EventLog
# ---------------------------------------------------------------------------


class TestEventLog:
    """Tests for the event log store."""

    def test_append_and_len(self) -> None:
        log = EventLog()
        assert len(log) == 0
        log.append(_connected())
        assert len(log) == 1

    def test_max_events_enforced(self) -> None:
        log = EventLog(max_events=5)
        for i in range(10):
            log.append(_connected(i))
        assert len(log) == 5
        assert log.recent(1)[0].clients == 9

    def test_recent(self) -> None:
        log = EventLog()
        for i in range(5):
            log.append(_connected(i))
        recent = log.recent(3)
        assert [e.clients for e in recent] == [2, 3, 4]

    def test_query_by_type(self) -> None:
        log = EventLog()
        log.append(_connected())
        log.append(FileChanged(path="/a.html", kind="modified", timestamp_ns=now_ns()))
        results = log.query(event_type=FileChanged)
        assert len(results) == 1
        assert isinstance(results[0], FileChanged)

    def test_query_most_recent_first_with_limit(self) -> None:
        log = EventLog()
        for i in range(5):
            log.append(_connected(i))
        assert [e.clients for e in log.query(limit=2)] == [4, 3]

    def test_query_since(self) -> None:
        log = EventLog()
        log.append(_connected(1, ts=100))
        log.append(_connected(2, ts=200))
        assert [e.clients for e in log.query(since_ns=150)] == [2]

    def test_clear(self) -> None:
        log = EventLog()
        log.append(_connected())
        assert log.clear() == 1
        assert len(log) == 0

    def test_stats(self) -> None:
        log = EventLog(max_events=10)
        log.append(_connected())
        log.append(_connected(2))
        log.append(FileChanged(path="/a.html", kind="created", timestamp_ns=now_ns()))
        stats = log.stats()
        assert stats["total"] == 3
        assert stats["max_events"] == 10
        assert stats["by_type"] == {"ClientConnected": 2, "FileChanged": 1}


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class TestEvents:
    def test_frozen(self) -> None:
        event = ReloadBroadcast(
            trigger_path="/a.html", clients_notified=1, clients_dropped=0, timestamp_ns=now_ns(),
        )
        with pytest.raises(AttributeError):
            event.clients_notified = 2  # type: ignore[misc]

    def test_now_ns_monotonic(self) -> None:
        a = now_ns()
        b = now_ns()
        assert b >= a


# ---------------------------------------------------------------------------
# StackCollector
# ---------------------------------------------------------------------------


class TestStackCollector:
    def test_default_log(self) -> None:
        assert isinstance(StackCollector().log, EventLog)

    def test_shared_log(self) -> None:
        log = EventLog()
        collector = StackCollector(log)
        collector.record_connect("a", 1)
        assert len(log) == 1

    def test_record_all_kinds(self) -> None:
        collector = StackCollector()
        collector.record_connect("a", 1)
        collector.record_change("/root/index.html", "modified")
        collector.record_broadcast("/root/index.html", notified=1, dropped=0)
        collector.record_disconnect("a", 0)

        kinds = [type(e) for e in collector.log.recent()]
        assert kinds == [ClientConnected, FileChanged, ReloadBroadcast, ClientDisconnected]

    def test_broadcast_counts(self) -> None:
        collector = StackCollector()
        collector.record_broadcast("/root/app.html", notified=2, dropped=1)
        (event,) = collector.log.query(event_type=ReloadBroadcast)
        assert event.trigger_path == "/root/app.html"
        assert event.clients_notified == 2
        assert event.clients_dropped == 1

    def test_disconnect_count(self) -> None:
        collector = StackCollector()
        collector.record_disconnect("a", 3)
        (event,) = collector.log.query(event_type=ClientDisconnected)
        assert event.clients == 3
