"""Tests for EventWatcher: classification, reporting, counting and draining."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from kubernetes_asyncio.client import CoreV1Event, V1ObjectMeta, V1ObjectReference
from prometheus_client import REGISTRY
from structlog.testing import capture_logs

from eventtailer.cache.store import Store
from eventtailer.collector.counters import CounterSnapshot, EventCounters
from eventtailer.collector.event_watcher import EventWatcher, _format_age
from eventtailer.models.events import last_seen

_START = datetime(2026, 3, 1, 12, 0, 0, tzinfo=UTC)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_event(
    name: str = "my-event",
    namespace: str = "default",
    last_timestamp: datetime | None = _START,
    message: str = "Started container app",
    count: int = 1,
    resource_version: str = "100",
    event_time: datetime | None = None,
) -> CoreV1Event:
    return CoreV1Event(
        metadata=V1ObjectMeta(name=name, namespace=namespace, resource_version=resource_version),
        involved_object=V1ObjectReference(kind="Pod", name="my-pod", namespace=namespace),
        last_timestamp=last_timestamp,
        event_time=event_time,
        message=message,
        count=count,
    )


def _make_watcher(now: datetime = _START) -> tuple[EventWatcher, Store, EventCounters]:
    store = Store()
    counters = EventCounters()
    watcher = EventWatcher(store, counters, start_time=_START, clock=lambda: now)
    return watcher, store, counters


def _records(logs: list[dict], event: str) -> list[dict]:
    return [entry for entry in logs if entry["event"] == event]


def _sample(name: str) -> float:
    return REGISTRY.get_sample_value(name) or 0.0


# ===========================================================================
# Fresh vs old
# ===========================================================================


class TestClassification:
    def test_event_four_minutes_before_start_is_reported(self) -> None:
        watcher, store, counters = _make_watcher()
        event = _make_event(last_timestamp=_START - timedelta(minutes=4))
        store.add(event)

        with capture_logs() as logs:
            watcher.on_add(event)

        added = _records(logs, "Event added")
        assert len(added) == 1
        assert counters.snapshot() == CounterSnapshot(added=1)

    def test_event_six_minutes_before_start_is_counted_old(self) -> None:
        watcher, store, counters = _make_watcher()
        event = _make_event(last_timestamp=_START - timedelta(minutes=6))
        store.add(event)

        with capture_logs() as logs:
            watcher.on_add(event)

        assert _records(logs, "Event added") == []
        assert counters.snapshot() == CounterSnapshot(old=1)
        assert len(store) == 0

    def test_event_after_start_is_reported_regardless_of_age(self) -> None:
        watcher, store, counters = _make_watcher(now=_START + timedelta(days=3))
        event = _make_event(last_timestamp=_START + timedelta(seconds=1))
        store.add(event)

        watcher.on_add(event)

        assert counters.snapshot().added == 1

    def test_undated_event_is_old(self) -> None:
        watcher, store, counters = _make_watcher()
        event = _make_event(last_timestamp=None)
        store.add(event)

        watcher.on_add(event)

        assert counters.snapshot() == CounterSnapshot(old=1)

    def test_event_time_used_when_last_timestamp_missing(self) -> None:
        watcher, store, counters = _make_watcher()
        event = _make_event(last_timestamp=None, event_time=_START - timedelta(minutes=1))
        store.add(event)

        watcher.on_add(event)

        assert counters.snapshot().added == 1

    def test_old_event_increments_old_metric(self) -> None:
        watcher, store, _ = _make_watcher()
        event = _make_event(last_timestamp=_START - timedelta(hours=1))
        store.add(event)
        before = _sample("informer_events_old_total")

        watcher.on_add(event)

        assert _sample("informer_events_old_total") == before + 1


# ===========================================================================
# Report record
# ===========================================================================


class TestReport:
    def test_record_fields(self) -> None:
        watcher, store, _ = _make_watcher()
        event = _make_event(
            name="web.17a2",
            namespace="shop",
            last_timestamp=_START - timedelta(minutes=4, seconds=0.6),
            message="Back-off restarting failed container",
            count=7,
            resource_version="4242",
        )
        store.add(event)

        with capture_logs() as logs:
            watcher.on_add(event)

        (record,) = _records(logs, "Event added")
        assert record["log_level"] == "info"
        assert record["namespace"] == "shop"
        assert record["name"] == "web.17a2"
        assert record["version"] == "4242"
        assert record["event_msg"] == "Back-off restarting failed container"
        assert record["last_timestamp"] == "2026-03-01T11:55:59Z"
        assert record["age"] == "0:04:01"
        assert record["count"] == 7

    def test_update_reports_new_object(self) -> None:
        watcher, store, counters = _make_watcher()
        old = _make_event(count=1)
        new = _make_event(count=2, resource_version="101")
        store.add(new)

        with capture_logs() as logs:
            watcher.on_update(old, new)

        (record,) = _records(logs, "Event updated")
        assert record["count"] == 2
        assert record["version"] == "101"
        assert counters.snapshot() == CounterSnapshot(updated=1)

    def test_delete_is_reported_and_counted(self) -> None:
        watcher, _, counters = _make_watcher()

        with capture_logs() as logs:
            watcher.on_delete(_make_event())

        assert len(_records(logs, "Event deleted")) == 1
        assert counters.snapshot() == CounterSnapshot(deleted=1)

    def test_added_metric_incremented(self) -> None:
        watcher, store, _ = _make_watcher()
        event = _make_event()
        store.add(event)
        before = _sample("informer_events_add_total")

        watcher.on_add(event)

        assert _sample("informer_events_add_total") == before + 1

    def test_format_age_rounds_to_nearest_second(self) -> None:
        assert _format_age(59.4) == "0:00:59"
        assert _format_age(59.6) == "0:01:00"
        assert _format_age(-3.2) == "-0:00:03"

    def test_format_age_rounds_halves_away_from_zero(self) -> None:
        assert _format_age(2.5) == "0:00:03"
        assert _format_age(0.5) == "0:00:01"
        assert _format_age(-2.5) == "-0:00:03"
        assert _format_age(-0.4) == "0:00:00"


# ===========================================================================
# Draining
# ===========================================================================


class TestDrain:
    def test_n_adds_leave_store_empty(self) -> None:
        watcher, store, counters = _make_watcher()
        events = [_make_event(name=f"ev-{i}") for i in range(25)]

        for event in events:
            store.add(event)
            watcher.on_add(event)

        assert counters.snapshot() == CounterSnapshot(added=25)
        assert len(store) == 0

    def test_update_drains_store(self) -> None:
        watcher, store, _ = _make_watcher()
        event = _make_event()
        store.add(event)

        watcher.on_update(event, event)

        assert len(store) == 0

    def test_missing_object_logs_error_and_continues(self) -> None:
        watcher, store, counters = _make_watcher()
        event = _make_event(name="gone")

        with capture_logs() as logs:
            watcher.on_add(event)

        errors = _records(logs, "Could not delete object")
        assert len(errors) == 1
        assert errors[0]["log_level"] == "error"
        assert errors[0]["key"] == "default/gone"
        assert errors[0]["operation"] == "added"
        assert counters.snapshot().added == 1

    def test_delete_of_absent_object_is_silent(self) -> None:
        watcher, _, _ = _make_watcher()

        with capture_logs() as logs:
            watcher.on_delete(_make_event())

        assert _records(logs, "Could not delete object") == []

    def test_store_size_gauge_tracks_store(self) -> None:
        _, store, _ = _make_watcher()
        store.add(_make_event(name="pending-1"))
        store.add(_make_event(name="pending-2"))

        assert REGISTRY.get_sample_value("informer_store_size") == 2.0


class TestLastSeen:
    def test_naive_timestamp_taken_as_utc(self) -> None:
        event = _make_event(last_timestamp=datetime(2026, 3, 1, 11, 0, 0))
        assert last_seen(event) == datetime(2026, 3, 1, 11, 0, 0, tzinfo=UTC)

    def test_creation_timestamp_fallback(self) -> None:
        event = _make_event(last_timestamp=None)
        event.metadata.creation_timestamp = _START
        assert last_seen(event) == _START
