"""Core data structures for the event tailer."""

from eventtailer.models.config import (
    APIConfig,
    KubeConfig,
    LogConfig,
    StatsConfig,
    TailerConfig,
)
from eventtailer.models.events import TransitionKind, as_utc, last_seen

__all__ = [
    "APIConfig",
    "KubeConfig",
    "LogConfig",
    "StatsConfig",
    "TailerConfig",
    "TransitionKind",
    "as_utc",
    "last_seen",
]
