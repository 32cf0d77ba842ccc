"""``k8s-event-tailer`` command.

Flags override the EVENTTAILER_* environment configuration.
"""

from __future__ import annotations

import asyncio

import click

from eventtailer import __version__
from eventtailer.app import main
from eventtailer.config import expand_home, load_config
from eventtailer.models.config import TailerConfig
from eventtailer.observability.logging import LOG_FORMATS


def build_config(
    kubeconfig: str | None = None,
    namespace: str | None = None,
    stats_interval: int | None = None,
    port: int | None = None,
    verbose: bool = False,
    log_format: str | None = None,
) -> TailerConfig:
    """Load the environment configuration and apply command-line overrides."""
    try:
        config = load_config()
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc

    if kubeconfig is not None:
        config.kube.kubeconfig = expand_home(kubeconfig)
    if namespace is not None:
        config.kube.namespace = namespace
    if stats_interval is not None:
        config.stats.interval_seconds = stats_interval
    if port is not None:
        config.api.port = port
    if verbose:
        config.log.level = "debug"
    if log_format is not None:
        config.log.format = log_format
    return config


def _run(config: TailerConfig) -> None:
    asyncio.run(main(config))


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "-k",
    "--kubeconfig",
    default=None,
    help="Path to kubeconfig [env: KUBECONFIG, default: ~/.kube/config].",
)
@click.option("-n", "--namespace", default=None, help="Namespace to watch (default: all namespaces).")
@click.option(
    "-s",
    "--stats-interval",
    type=int,
    default=None,
    help="Seconds between stats logs; 0 disables them (default: 10).",
)
@click.option(
    "-p",
    "--port",
    type=click.IntRange(0, 65535),
    default=None,
    help="HTTP port for health and metrics (default: 8000).",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Debug logging.")
@click.option(
    "--log-format",
    type=click.Choice(LOG_FORMATS),
    default=None,
    help="Log renderer (default: console).",
)
@click.version_option(__version__, prog_name="k8s-event-tailer")
def cli(
    kubeconfig: str | None,
    namespace: str | None,
    stats_interval: int | None,
    port: int | None,
    verbose: bool,
    log_format: str | None,
) -> None:
    """Log Kubernetes events as they happen and expose counters over HTTP."""
    config = build_config(
        kubeconfig=kubeconfig,
        namespace=namespace,
        stats_interval=stats_interval,
        port=port,
        verbose=verbose,
        log_format=log_format,
    )
    _run(config)
