"""Periodic stats reporter.

Every ``interval_seconds`` it logs the store size, the cumulative
added/updated/deleted counters and their delta since the previous tick.
The old-event counter is only exposed through ``/metrics``.
"""

from __future__ import annotations

import asyncio

from eventtailer.cache.store import Store
from eventtailer.collector.counters import CounterSnapshot, EventCounters
from eventtailer.observability.logging import get_logger


class StatsReporter:
    def __init__(self, store: Store, counters: EventCounters, interval_seconds: float) -> None:
        self._store = store
        self._counters = counters
        self._interval = interval_seconds
        self._previous = CounterSnapshot()
        self._log = get_logger("stats")

    @property
    def enabled(self) -> bool:
        return self._interval > 0

    async def run(self, stop: asyncio.Event) -> None:
        """Tick on a fixed schedule until *stop* is set."""
        if not self.enabled:
            self._log.info("Disabling stats")
            return

        self._log.info("Starting stats", interval_s=self._interval)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._interval
        while True:
            try:
                await asyncio.wait_for(stop.wait(), timeout=max(0.0, deadline - loop.time()))
            except TimeoutError:
                pass
            if stop.is_set():
                self._log.info("Stopping stats")
                return
            self._emit_snapshot()
            deadline += self._interval

    def _emit_snapshot(self) -> None:
        current = self._counters.snapshot()
        delta = current - self._previous
        self._log.info("STATS: store size", items=len(self._store.list_keys()))
        self._log.info(
            "STATS: counters",
            added=current.added,
            updated=current.updated,
            deleted=current.deleted,
        )
        self._log.info(
            "STATS: delta",
            added=delta.added,
            updated=delta.updated,
            deleted=delta.deleted,
        )
        self._previous = current
