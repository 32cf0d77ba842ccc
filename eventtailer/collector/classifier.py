"""Staleness check for events delivered by the informer.

The initial list replays every event the API server still retains.  Only
events observed after the watcher started, or at most ``OLD_EVENT_AGE``
before it, are reported.
"""

from __future__ import annotations

from datetime import datetime, timedelta

OLD_EVENT_AGE = timedelta(minutes=5)


def is_old(last_seen: datetime, start_time: datetime) -> bool:
    """Return True if an event last seen at *last_seen* should be ignored."""
    if last_seen > start_time:
        return False
    return start_time - last_seen > OLD_EVENT_AGE
