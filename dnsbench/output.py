"""
Output formatting for benchmark results.

Provides multiple output formats:
- JSON: Machine-readable list of endpoint results
- CSV: Spreadsheet-compatible summary
- Rich console: Ranked terminal table
"""

import csv
import json
from io import StringIO
from pathlib import Path
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .models import EndpointResult


def rank_results(results: Sequence[EndpointResult]) -> list[EndpointResult]:
    """
    Order results best first.

    Successful endpoints come first, by success percentage (higher is
    better) and then median latency (lower is better).
    """
    def key(r: EndpointResult):
        latency = r.latency_median_ms if r.latency_median_ms is not None else float("inf")
        return (not r.query_successful, -r.success_percent, latency, r.server_address)

    return sorted(results, key=key)


def _fmt_ms(value: Optional[float]) -> str:
    return "-" if value is None else f"{value:.1f}"


class JSONOutput:
    """JSON output formatter."""

    @staticmethod
    def format(results: Sequence[EndpointResult], indent: int = 2) -> str:
        """
        Format endpoint results as a JSON array.

        Args:
            results: Results to format
            indent: JSON indentation level

        Returns:
            JSON string
        """
        return json.dumps([r.to_dict() for r in results], indent=indent)

    @staticmethod
    def save(results: Sequence[EndpointResult], path: Path) -> None:
        """Save results to a JSON file."""
        with open(path, "w") as f:
            f.write(JSONOutput.format(results))


class CSVOutput:
    """CSV output formatter."""

    HEADER = [
        "server_address",
        "latency_median_ms",
        "jitter_ms",
        "success_percent",
        "query_successful",
        "dnssec_validated",
        "ipv4_ips",
        "ipv6_ips",
        "error_msg",
    ]

    @staticmethod
    def format(results: Sequence[EndpointResult]) -> str:
        """
        Format endpoint results as CSV, one row per endpoint.

        Address lists are joined with spaces.
        """
        output = StringIO()
        writer = csv.writer(output)
        writer.writerow(CSVOutput.HEADER)

        for r in results:
            writer.writerow([
                r.server_address,
                "" if r.latency_median_ms is None else round(r.latency_median_ms, 3),
                "" if r.jitter_ms is None else round(r.jitter_ms, 3),
                round(r.success_percent, 2),
                r.query_successful,
                r.dnssec_validated,
                " ".join(r.ipv4_ips),
                " ".join(r.ipv6_ips),
                r.error_msg or "",
            ])

        return output.getvalue()

    @staticmethod
    def save(results: Sequence[EndpointResult], path: Path) -> None:
        """Save results to a CSV file."""
        with open(path, "w", newline="") as f:
            f.write(CSVOutput.format(results))


class RichConsoleOutput:
    """Rich library console output with colors and tables."""

    @staticmethod
    def print(
        results: Sequence[EndpointResult],
        query: str,
        console: Optional[Console] = None,
    ) -> None:
        """Print ranked results as a table followed by the fastest endpoint."""
        console = console or Console()
        ranked = rank_results(results)

        console.print()
        console.print(Panel.fit(
            f"[bold blue]DNS BENCHMARK RESULTS[/bold blue]  [dim]{query}[/dim]",
            border_style="blue",
        ))
        console.print()

        table = Table(
            title="Endpoint Performance",
            box=box.ROUNDED,
            header_style="bold magenta",
        )

        table.add_column("#", justify="right", style="dim")
        table.add_column("Server", style="cyan")
        table.add_column("Median (ms)", justify="right", style="green")
        table.add_column("Jitter (ms)", justify="right", style="yellow")
        table.add_column("Success", justify="right")
        table.add_column("DNSSEC", justify="center")
        table.add_column("Answers")
        table.add_column("Error", style="red")

        for rank, r in enumerate(ranked, start=1):
            answers = list(r.ipv4_ips) + list(r.ipv6_ips)
            table.add_row(
                str(rank),
                r.server_address,
                _fmt_ms(r.latency_median_ms),
                _fmt_ms(r.jitter_ms),
                f"{r.success_percent:.0f}%",
                "✓" if r.dnssec_validated else "",
                ", ".join(answers[:3]) + (" …" if len(answers) > 3 else ""),
                r.error_msg or "",
            )

        console.print(table)
        console.print()

        best = ranked[0] if ranked and ranked[0].query_successful else None
        if best:
            console.print(Panel(
                f"[bold green]FASTEST: {best.server_address}[/bold green]\n"
                f"Median Latency: {_fmt_ms(best.latency_median_ms)}ms | "
                f"Success Rate: {best.success_percent:.1f}%",
                border_style="green",
            ))
        else:
            console.print(Panel(
                "[bold yellow]No successful queries - cannot determine fastest endpoint[/bold yellow]",
                border_style="yellow",
            ))

        console.print()
