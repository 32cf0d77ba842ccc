"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from eventtailer.models.config import (
    APIConfig,
    KubeConfig,
    LogConfig,
    StatsConfig,
    TailerConfig,
)
from eventtailer.observability.logging import LOG_FORMATS

DEFAULT_KUBECONFIG = "~/.kube/config"


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"EVENTTAILER_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_log_format(value: str) -> str:
    if value.lower() not in LOG_FORMATS:
        raise ValueError(f"Invalid log format: {value}. Must be one of {LOG_FORMATS}")
    return value.lower()


def expand_home(path: str) -> str:
    """Expand a leading ``~/`` to the user's home directory."""
    if path.startswith("~/"):
        return os.path.expanduser(path)
    return path


def _kubeconfig_path() -> str:
    # The tool-specific variable wins over the conventional KUBECONFIG.
    path = _env("KUBECONFIG") or os.environ.get("KUBECONFIG", "") or DEFAULT_KUBECONFIG
    return expand_home(path)


def load_config() -> TailerConfig:
    """Load configuration from EVENTTAILER_* environment variables."""
    level = _validate_log_level(_env("LOG_LEVEL", "info"))
    if _env_bool("VERBOSE", False):
        level = "debug"
    return TailerConfig(
        kube=KubeConfig(
            kubeconfig=_kubeconfig_path(),
            namespace=_env("NAMESPACE", ""),
            watch_timeout_seconds=_env_int("WATCH_TIMEOUT", 300, min_val=30, max_val=3600),
        ),
        stats=StatsConfig(
            interval_seconds=_env_int("STATS_INTERVAL", 10),
        ),
        api=APIConfig(
            port=_env_int("PORT", 8000, min_val=0, max_val=65535),
        ),
        log=LogConfig(
            level=level,
            format=_validate_log_format(_env("LOG_FORMAT", "console")),
        ),
    )
