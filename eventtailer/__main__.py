"""Entry point for `python -m eventtailer`.

Usage:
    python -m eventtailer --namespace default --stats-interval 30
"""

from __future__ import annotations

from eventtailer.cli import cli

cli(prog_name="k8s-event-tailer")
