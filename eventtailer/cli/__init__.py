"""Event tailer command-line interface.

Exposes:
    cli -- Click command entry point (registered as ``k8s-event-tailer`` script).
"""

from eventtailer.cli.main import cli

__all__ = ["cli"]
