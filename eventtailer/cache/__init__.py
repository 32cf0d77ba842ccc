"""Cache layer for the event tailer.

Submodules:
    store -- Thread-safe keyed store filled by the informer and drained by
             the event watcher after each notification.
"""

from eventtailer.cache.store import ObjectNotFoundError, Store, object_key

__all__ = ["ObjectNotFoundError", "Store", "object_key"]
