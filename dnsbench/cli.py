"""
Command-line interface for dnsbench.

Provides a CLI for benchmarking one query against many DNS endpoints
with console, JSON and CSV output.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich import box

from . import __version__
from .config import DEFAULT_SAMPLES, DEFAULT_TIMEOUT_SECS, INVALID_DOMAIN_SENTINEL
from .endpoints import protocol_of
from .models import BenchmarkRequest, EndpointResult
from .output import CSVOutput, JSONOutput, RichConsoleOutput
from .refresh import parse_endpoint_list, refresh_all
from .registry import EndpointDirectory, SniDirectory
from .runner import BenchmarkRunner

logger = logging.getLogger(__name__)

_STAGE_LABELS = {
    "precheck": "Prechecking endpoints",
    "benchmark": "Benchmarking endpoints",
}


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def create_runner(endpoints: EndpointDirectory, sni_hosts: SniDirectory) -> BenchmarkRunner:
    """Build the runner used by the CLI."""
    return BenchmarkRunner(endpoints=endpoints, sni_hosts=sni_hosts)


def create_progress_callback():
    """Create a progress bar and a callback that drives it."""
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        console=Console(stderr=True),
        transient=True,
    )
    tasks: dict[str, int] = {}

    def callback(stage: str, current: int, total: int):
        if stage not in tasks:
            tasks[stage] = progress.add_task(_STAGE_LABELS.get(stage, stage), total=total)
        progress.update(tasks[stage], completed=current)

    return progress, callback


def _refresh_directories(endpoints: EndpointDirectory, sni_hosts: SniDirectory) -> None:
    errors = asyncio.run(refresh_all(endpoints, sni_hosts))
    for name, error in errors.items():
        if error:
            click.echo(f"Warning: could not refresh {name} list: {error}", err=True)


def _save_results(results: list[EndpointResult], path: Path, quiet: bool) -> None:
    if path.suffix.lower() == ".csv":
        CSVOutput.save(results, path)
    else:
        if path.suffix.lower() != ".json":
            path = path.with_suffix(".json")
        JSONOutput.save(results, path)
    if not quiet:
        click.echo(f"Results saved to {path}", err=True)


@click.group()
@click.version_option(__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """
    dnsbench - Multi-protocol DNS endpoint benchmarking.

    Measures latency, jitter and success rate of UDP, DoT, DoH and DoQ
    endpoints for a single domain or reverse lookup.
    """
    configure_logging(verbose)


@main.command()
@click.argument("query")
@click.option(
    "--server", "-s",
    multiple=True,
    help="Endpoint address to test (can specify multiple), e.g. 1.1.1.1, "
         "tls://dns.google, https://dns.quad9.net/dns-query, quic://dns.adguard.com",
)
@click.option(
    "--servers-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="File with one endpoint address per line",
)
@click.option(
    "--timeout",
    type=click.IntRange(min=1),
    default=DEFAULT_TIMEOUT_SECS,
    show_default=True,
    help="Per-lookup timeout in seconds",
)
@click.option(
    "--samples", "-n",
    type=click.IntRange(min=1),
    default=DEFAULT_SAMPLES,
    show_default=True,
    help="Timed lookups per endpoint",
)
@click.option(
    "--dnssec",
    is_flag=True,
    help="Request DNSSEC validation",
)
@click.option(
    "--warm-up",
    is_flag=True,
    help="Send one unmeasured lookup per endpoint before sampling",
)
@click.option(
    "--refresh",
    is_flag=True,
    help="Fetch the remote endpoint and SNI lists before testing",
)
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    help="Output file path (JSON or CSV based on extension)",
)
@click.option(
    "--quiet", "-q",
    is_flag=True,
    help="Suppress progress output",
)
@click.option(
    "--json", "json_output",
    is_flag=True,
    help="Output results as JSON to stdout",
)
def run(
    query: str,
    server: tuple,
    servers_file: Optional[Path],
    timeout: int,
    samples: int,
    dnssec: bool,
    warm_up: bool,
    refresh: bool,
    output: Optional[Path],
    quiet: bool,
    json_output: bool,
):
    """
    Benchmark QUERY (a domain, or an IP for reverse lookup).

    Examples:

    \b
      # Test the built-in endpoint list
      dnsbench run example.com

    \b
      # Compare specific endpoints
      dnsbench run example.com -s 1.1.1.1 -s tls://dns.google -s https://dns.quad9.net/dns-query

    \b
      # Reverse lookup with DNSSEC, saved as CSV
      dnsbench run 8.8.8.8 --dnssec -o results.csv
    """
    endpoints = EndpointDirectory()
    sni_hosts = SniDirectory()
    if refresh:
        _refresh_directories(endpoints, sni_hosts)

    custom_servers = list(server)
    if servers_file is not None:
        custom_servers.extend(parse_endpoint_list(servers_file.read_text()))

    request = BenchmarkRequest(
        domain_or_ip=query,
        custom_servers=custom_servers or None,
        timeout_secs=timeout,
        samples=samples,
        validate_dnssec=dnssec,
        warm_up=warm_up,
    )
    runner = create_runner(endpoints, sni_hosts)

    if quiet or json_output:
        results = asyncio.run(runner.run(request))
    else:
        progress, callback = create_progress_callback()
        with progress:
            results = asyncio.run(runner.run(request, progress_callback=callback))

    if json_output:
        click.echo(JSONOutput.format(results))
    elif not quiet:
        RichConsoleOutput.print(results, query)

    if output:
        _save_results(results, output, quiet)

    if len(results) == 1 and results[0].server_address == INVALID_DOMAIN_SENTINEL:
        click.echo(f"Error: {results[0].error_msg}", err=True)
        sys.exit(1)


@main.command()
@click.option("--refresh", is_flag=True, help="Fetch the remote lists first")
def servers(refresh: bool):
    """List the endpoints tested by default."""
    endpoints = EndpointDirectory()
    if refresh:
        _refresh_directories(endpoints, SniDirectory())

    table = Table(title="DNS Endpoints", box=box.ROUNDED, header_style="bold cyan")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Endpoint", style="green")
    table.add_column("Protocol", style="yellow")

    for i, address in enumerate(endpoints.get(), start=1):
        table.add_row(str(i), address, protocol_of(address).value.upper())

    Console().print(table)


@main.command()
@click.option("--refresh", is_flag=True, help="Fetch the remote lists first")
def sni(refresh: bool):
    """List the IP to TLS hostname mappings."""
    sni_hosts = SniDirectory()
    if refresh:
        _refresh_directories(EndpointDirectory(), sni_hosts)

    table = Table(title="SNI Hosts", box=box.ROUNDED, header_style="bold cyan")
    table.add_column("IP", style="cyan")
    table.add_column("TLS hostname", style="green")

    for ip, host in sorted(sni_hosts.get().items()):
        table.add_row(ip, host)

    Console().print(table)


if __name__ == "__main__":
    main()
