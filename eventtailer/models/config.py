"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class KubeConfig:
    """Cluster connection configuration."""

    kubeconfig: str = "~/.kube/config"
    namespace: str = ""
    watch_timeout_seconds: int = 300


@dataclass
class StatsConfig:
    """Periodic stats reporter configuration.

    An interval of zero or less disables the reporter.
    """

    interval_seconds: int = 10


@dataclass
class APIConfig:
    """HTTP server configuration."""

    port: int = 8000
    shutdown_grace_seconds: int = 10


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"
    format: str = "console"


@dataclass
class TailerConfig:
    """Top-level event tailer configuration."""

    kube: KubeConfig = field(default_factory=KubeConfig)
    stats: StatsConfig = field(default_factory=StatsConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log: LogConfig = field(default_factory=LogConfig)
