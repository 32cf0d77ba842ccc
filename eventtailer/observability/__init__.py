"""Logging and metrics for the event tailer."""
