"""ZoneProbe CLI - report whether pod storage shares a zone with pod compute."""

import json
import sys
import threading
from pathlib import Path
from typing import Optional

import click
from kubernetes.config import ConfigException

from zoneprobe import __version__
from zoneprobe.cluster.client import ClusterClient
from zoneprobe.config.loader import build_config
from zoneprobe.config.validator import ValidationError
from zoneprobe.errors import (
    CollaboratorUnavailable,
    ReportCancelled,
    ResourceNotFound,
    SelectorInvalid,
)
from zoneprobe.output.renderers import OutputFormat, render
from zoneprobe.topology.report import ReportBuilder


def _fail(message: str, code: int = 1) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(code)


def _echo_validation_error(e: ValidationError) -> None:
    click.echo(f"Error: {e}", err=True)
    for detail in e.errors:
        click.echo(f"  - {detail}", err=True)


@click.group()
@click.version_option(__version__, prog_name="zoneprobe")
def main():
    """ZoneProbe - check that Kubernetes pods and their volumes share a zone.

    Correlates each selected pod's node zone with the zone of every
    persistent volume it mounts through a claim.
    """
    pass


@main.command()
@click.option("--label", "-l", "label_selector", default=None,
              help="Label selector for the pods to inspect (e.g. app=postgres)")
@click.option(
    "--output", "-o", default=None,
    type=click.Choice([f.value for f in OutputFormat], case_sensitive=False),
    help="Output format (default: table). "
    + " ".join(f"{f.value}: {f.describe()}" for f in OutputFormat),
)
@click.option("--namespace", "-n", default=None,
              help="Namespace to search (default: all namespaces)")
@click.option("--zone-label", default=None,
              help="Label key holding the topology zone")
@click.option("--timeout", "timeout_seconds", default=None, type=float,
              help="Per-request timeout in seconds")
@click.option("--workers", default=None, type=int,
              help="Number of pods correlated in parallel")
@click.option("--retries", default=None, type=int,
              help="Retries for requests that fail as unavailable")
@click.option("--keep-going", is_flag=True,
              help="Report other pods when one pod cannot be correlated")
@click.option("--config", "config_path", type=click.Path(), default=None,
              help="YAML configuration file")
@click.option("--kubeconfig", default=None, help="Path to a kubeconfig file")
@click.option("--context", default=None, help="Kubeconfig context to use")
@click.option("--save", "save_path", type=click.Path(), default=None,
              help="Also write the rendered report to this file")
@click.option("--verbose", "-v", is_flag=True, help="Print progress to stderr")
def report(
    label_selector: Optional[str],
    output: Optional[str],
    namespace: Optional[str],
    zone_label: Optional[str],
    timeout_seconds: Optional[float],
    workers: Optional[int],
    retries: Optional[int],
    keep_going: bool,
    config_path: Optional[str],
    kubeconfig: Optional[str],
    context: Optional[str],
    save_path: Optional[str],
    verbose: bool,
):
    """Report node and volume zones for pods matching a label selector.

    \b
    Examples:
      # Table of every claim of the postgres pods, across namespaces
      zoneprobe report -l app=postgres

      # JSON for scripting
      zoneprobe report -l tier=storage -o json

      # One line per pod, tolerating pods whose volumes vanished
      zoneprobe report -l app=kafka -n streaming -o text --keep-going
    """
    try:
        config = build_config(
            config_path,
            {
                "labelSelector": label_selector,
                "output": output.lower() if output else None,
                "namespace": namespace,
                "zoneLabel": zone_label,
                "timeoutSeconds": timeout_seconds,
                "workers": workers,
                "retries": retries,
                "keepGoing": True if keep_going else None,
                "kubeconfig": kubeconfig,
                "context": context,
            },
        )
    except FileNotFoundError as e:
        _fail(str(e))
    except ValidationError as e:
        _echo_validation_error(e)
        sys.exit(1)
    except SelectorInvalid as e:
        _fail(str(e))

    def progress(message: str) -> None:
        if verbose or message.startswith("WARNING"):
            prefix = "" if message.startswith("WARNING") else "[verbose] "
            click.echo(f"{prefix}{message}", err=True)

    cancel_event = threading.Event()
    try:
        cluster = ClusterClient(
            timeout=config.timeout_seconds,
            retries=config.retries,
            kubeconfig=config.kubeconfig,
            context=config.context,
            cancel_event=cancel_event,
        )
    except (ConfigException, OSError) as e:
        _fail(f"cannot load Kubernetes configuration: {e}")

    builder = ReportBuilder(cluster, config, cancel_event=cancel_event, progress=progress)
    try:
        result = builder.run()
    except SelectorInvalid as e:
        _fail(str(e))
    except ResourceNotFound as e:
        _fail(f"Not found: {e}")
    except CollaboratorUnavailable as e:
        _fail(f"Kubernetes API unavailable: {e}")
    except ReportCancelled as e:
        _fail(str(e), code=130)
    except KeyboardInterrupt:
        cancel_event.set()
        _fail("report interrupted", code=130)

    rendered = render(result.pods, config.output)
    click.echo(rendered, nl=False)

    if not result.complete:
        click.echo(
            f"WARNING: report is incomplete, {len(result.failures)} pod(s) skipped",
            err=True,
        )

    if save_path:
        Path(save_path).write_text(rendered)
        click.echo(f"Report saved to {save_path}", err=True)

    if verbose:
        summary = result.summary()
        click.echo(
            f"[verbose] {summary['pods']} pod(s): {summary['zoneMatched']} matched, "
            f"{summary['zoneMismatched']} mismatched, {summary['failed']} failed",
            err=True,
        )


@main.command("check-config")
@click.argument("config_path", type=click.Path(exists=True))
@click.option("--label", "-l", "label_selector", default=None,
              help="Label selector, if not set in the file")
def check_config(config_path: str, label_selector: Optional[str]):
    """Validate a configuration file and print the effective settings."""
    try:
        config = build_config(config_path, {"labelSelector": label_selector})
    except ValidationError as e:
        _echo_validation_error(e)
        sys.exit(1)
    except SelectorInvalid as e:
        _fail(str(e))

    click.echo(json.dumps(config.to_dict(), indent=2))


if __name__ == "__main__":
    main()
