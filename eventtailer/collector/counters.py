"""Transition counters shared by the event watcher and the stats reporter."""

from __future__ import annotations

import threading
from dataclasses import dataclass

from eventtailer.models.events import TransitionKind


@dataclass(frozen=True)
class CounterSnapshot:
    """Point-in-time copy of the counters."""

    added: int = 0
    updated: int = 0
    deleted: int = 0
    old: int = 0

    def __sub__(self, other: CounterSnapshot) -> CounterSnapshot:
        return CounterSnapshot(
            added=self.added - other.added,
            updated=self.updated - other.updated,
            deleted=self.deleted - other.deleted,
            old=self.old - other.old,
        )


class EventCounters:
    """Monotonic added/updated/deleted/old counters.

    Increments and snapshots take a lock, so a snapshot never observes a
    half-applied increment.  Counters are never reset.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._added = 0
        self._updated = 0
        self._deleted = 0
        self._old = 0

    def increment(self, kind: TransitionKind) -> None:
        with self._lock:
            if kind is TransitionKind.ADDED:
                self._added += 1
            elif kind is TransitionKind.UPDATED:
                self._updated += 1
            else:
                self._deleted += 1

    def increment_old(self) -> None:
        with self._lock:
            self._old += 1

    def snapshot(self) -> CounterSnapshot:
        with self._lock:
            return CounterSnapshot(
                added=self._added,
                updated=self._updated,
                deleted=self._deleted,
                old=self._old,
            )
