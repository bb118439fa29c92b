"""Tests for lookout.observability — pipeline event recording."""

import threading

from lookout.observability import (
    ChangeReceived,
    Collector,
    EventLog,
    FileMirrored,
    NotificationSent,
    now_ns,
)


def _change(path: str = "app.js") -> ChangeReceived:
    return ChangeReceived(path=path, kind="modified", timestamp_ns=now_ns())


class TestEventLog:
    """Tests for the event log store."""

    def test_append_and_len(self) -> None:
        log = EventLog()
        assert len(log) == 0
        log.append(_change())
        assert len(log) == 1

    def test_max_events_enforced(self) -> None:
        log = EventLog(max_events=5)
        for i in range(10):
            log.append(_change(f"{i}.js"))
        assert len(log) == 5

    def test_recent(self) -> None:
        log = EventLog()
        for i in range(5):
            log.append(_change(f"{i}.js"))
        recent = log.recent(3)
        assert len(recent) == 3
        assert recent[-1].path == "4.js"

    def test_query_by_type(self) -> None:
        log = EventLog()
        log.append(_change("a.js"))
        log.append(FileMirrored(path="a.js", action="copied", duration_ms=1.0, timestamp_ns=now_ns()))
        log.append(_change("b.js"))

        results = log.query(event_type=ChangeReceived)
        assert [r.path for r in results] == ["b.js", "a.js"]

    def test_query_by_path_and_time(self) -> None:
        log = EventLog()
        log.append(_change("css/old.css"))
        cutoff = now_ns()
        log.append(_change("css/new.css"))
        log.append(_change("js/app.js"))

        results = log.query(path="css/", since_ns=cutoff)
        assert [r.path for r in results] == ["css/new.css"]

    def test_query_limit(self) -> None:
        log = EventLog()
        for i in range(10):
            log.append(_change(f"{i}.js"))
        assert len(log.query(limit=3)) == 3

    def test_clear(self) -> None:
        log = EventLog()
        log.append(_change())
        assert log.clear() == 1
        assert len(log) == 0

    def test_stats(self) -> None:
        log = EventLog(max_events=50)
        log.append(_change())
        log.append(_change())
        stats = log.stats()
        assert stats == {"total": 2, "max_events": 50, "by_type": {"ChangeReceived": 2}}

    def test_concurrent_appends(self) -> None:
        log = EventLog()

        def writer() -> None:
            for _ in range(200):
                log.append(_change())

        threads = [threading.Thread(target=writer) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(log) == 800


class TestCollector:
    def test_records_each_kind(self) -> None:
        collector = Collector()
        collector.record_change("app.js", kind="added")
        collector.record_mirror("app.js", action="copied", duration_ms=0.5)
        collector.record_broadcast("app.js", clients_notified=2)

        types = [type(e) for e in collector.log.recent()]
        assert types == [ChangeReceived, FileMirrored, NotificationSent]

    def test_shared_log(self) -> None:
        log = EventLog()
        Collector(log).record_change("a.js", kind="removed")
        assert len(log) == 1

    def test_summary(self) -> None:
        collector = Collector()
        collector.record_change("a.js", kind="modified")
        collector.record_change("a.js", kind="modified")
        collector.record_broadcast("a.js", clients_notified=1)
        assert collector.summary() == "2 changes, 0 mirror writes, 1 notifications"
