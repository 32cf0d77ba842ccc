"""k8s-event-tailer: logs Kubernetes events as they happen."""

__version__ = "0.1.0"
