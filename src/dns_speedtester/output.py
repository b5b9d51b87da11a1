"""
Output formatting for DNS test results.

Provides multiple output formats:
- JSON: Machine-readable full results
- CSV: One row per resolver
- Human-readable: Rich terminal table with a winner panel
"""

import csv
import json
from io import StringIO
from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .models import ResolverConfig, RunResult, ServerStatus, TestDomain
from .statistics import StatisticsEngine


def _resolver_dict(resolver: ResolverConfig) -> dict:
    return {
        "name": resolver.name,
        "primary_ip": resolver.primary_ip,
        "secondary_ip": resolver.secondary_ip,
        "custom": resolver.is_custom,
        "status": resolver.status.value,
        "latency_ms": resolver.latency,
        "detail": resolver.status_detail,
    }


class JSONOutput:
    """JSON output formatter."""

    @staticmethod
    def format(result: RunResult, indent: int = 2) -> str:
        """
        Format a run result as JSON.

        Args:
            result: RunResult to format
            indent: JSON indentation level

        Returns:
            JSON string
        """
        summary = StatisticsEngine.summarize(result.resolvers)
        winner = result.winner

        data = {
            "metadata": {
                "started_at": result.started_at.isoformat(),
                "completed_at": result.completed_at.isoformat(),
                "duration_seconds": round(result.duration_seconds, 3),
                "domain": result.domain,
                "tested": result.tested_count,
                "total": result.total_count,
            },
            "summary": {
                "measured": summary.measured,
                "failed": summary.failed,
                "min_ms": summary.min_latency,
                "max_ms": summary.max_latency,
                "mean_ms": round(summary.mean_latency, 1) if summary.mean_latency is not None else None,
                "median_ms": summary.median_latency,
            },
            "resolvers": [_resolver_dict(r) for r in result.resolvers],
            "winner": _resolver_dict(winner) if winner else None,
        }

        return json.dumps(data, indent=indent, ensure_ascii=False)

    @staticmethod
    def save(result: RunResult, path: Path) -> None:
        """Save a run result to a JSON file."""
        with open(path, "w", encoding="utf-8") as f:
            f.write(JSONOutput.format(result))


class CSVOutput:
    """CSV output formatter."""

    HEADER = ["rank", "resolver", "primary_ip", "secondary_ip", "status", "latency_ms", "detail"]

    @staticmethod
    def format(result: RunResult) -> str:
        """Format a run result as CSV, one row per resolver in rank order."""
        output = StringIO()
        writer = csv.writer(output)
        writer.writerow(CSVOutput.HEADER)

        for rank, resolver in enumerate(result.resolvers, start=1):
            writer.writerow([
                rank,
                resolver.name,
                resolver.primary_ip,
                resolver.secondary_ip or "",
                resolver.status.value,
                "" if resolver.latency is None else resolver.latency,
                resolver.status_detail,
            ])

        return output.getvalue()

    @staticmethod
    def save(result: RunResult, path: Path) -> None:
        """Save a run result to a CSV file."""
        with open(path, "w", newline="", encoding="utf-8") as f:
            f.write(CSVOutput.format(result))


_STATUS_STYLES = {
    ServerStatus.SUCCESS: "green",
    ServerStatus.TIMEOUT: "yellow",
    ServerStatus.ERROR: "red",
    ServerStatus.TESTING: "cyan",
    ServerStatus.UNTESTED: "dim",
}


class RichConsoleOutput:
    """Rich console output with colors and tables."""

    @staticmethod
    def resolver_table(resolvers: list[ResolverConfig], title: str = "DNS Servers") -> Table:
        table = Table(title=title, box=box.ROUNDED, header_style="bold magenta")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Resolver", style="cyan")
        table.add_column("Primary")
        table.add_column("Secondary", style="dim")
        table.add_column("Latency", justify="right")
        table.add_column("Detail", style="dim")

        for rank, resolver in enumerate(resolvers, start=1):
            style = _STATUS_STYLES[resolver.status]
            name = f"{resolver.name} *" if resolver.is_custom else resolver.name
            table.add_row(
                str(rank),
                name,
                resolver.primary_ip,
                resolver.secondary_ip or "-",
                f"[{style}]{resolver.latency_display}[/{style}]",
                resolver.status_detail,
            )
        return table

    @staticmethod
    def domain_table(domains: list[TestDomain], selected: Optional[TestDomain] = None) -> Table:
        table = Table(title="Test Domains", box=box.ROUNDED, header_style="bold cyan")
        table.add_column("Name", style="green")
        table.add_column("Domain", style="cyan")
        table.add_column("Category")

        for domain in domains:
            marker = " (default)" if domain is selected else ""
            name = f"{domain.name} *" if domain.is_custom else domain.name
            table.add_row(name + marker, domain.domain, domain.category)
        return table

    @staticmethod
    def print(result: RunResult, console: Optional[Console] = None) -> None:
        """Print a run result as a table plus a winner panel."""
        console = console or Console()

        console.print()
        console.print(Panel.fit(
            "[bold blue]DNS SPEED TEST RESULTS[/bold blue]",
            border_style="blue",
        ))
        console.print(f"  [dim]Domain:[/dim] [cyan]{result.domain}[/cyan] | "
                      f"[dim]Duration:[/dim] {result.duration_seconds:.1f}s | "
                      f"[dim]Tested:[/dim] {result.tested_count}/{result.total_count}")
        console.print()
        console.print(RichConsoleOutput.resolver_table(result.resolvers, title="Resolver Latency"))
        console.print()

        winner = result.winner
        if winner:
            console.print(Panel(
                f"[bold green]WINNER: {winner.name}[/bold green]\n"
                f"{winner.primary_ip}"
                f"{' / ' + winner.secondary_ip if winner.secondary_ip else ''} | "
                f"Latency: {winner.latency}ms",
                border_style="green",
            ))
        else:
            console.print(Panel(
                "[bold yellow]No resolver answered - cannot determine winner[/bold yellow]",
                border_style="yellow",
            ))

        console.print()
