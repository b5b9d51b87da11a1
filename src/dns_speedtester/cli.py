"""
Command-line interface for DNS Speed Tester.

Runs latency tests across DNS resolvers and manages the user's own
resolver and test-domain lists.
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn

from . import __version__
from .config import get_settings
from .events import RunObserver
from .models import ResolverConfig
from .output import CSVOutput, JSONOutput, RichConsoleOutput
from .resolvers import RANDOM_CATEGORY, create_custom_resolver
from .session import SpeedTestSession
from .utils.logging import configure_logging


class ProgressObserver(RunObserver):
    """Drives a rich progress bar from run events."""

    def __init__(self, progress: Progress, domain: str):
        self.progress = progress
        self.task_id = progress.add_task(f"Testing against {domain}", total=None)

    def on_progress(self, tested: int, total: int) -> None:
        self.progress.update(self.task_id, completed=tested, total=total)

    def on_resolver_changed(self, resolver: ResolverConfig) -> None:
        if resolver.status.is_terminal:
            self.progress.console.log(f"{resolver.name}: {resolver.latency_display}")


def _session(ctx: click.Context) -> SpeedTestSession:
    session = SpeedTestSession(settings=ctx.obj["settings"])
    session.load()
    return session


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


@click.group()
@click.version_option(__version__)
@click.option("--log-level", default=None, help="Logging level (default from DNS_SPEEDTESTER_LOG_LEVEL)")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding custom servers and domains",
)
@click.pass_context
def main(ctx: click.Context, log_level: Optional[str], json_logs: bool, data_dir: Optional[Path]):
    """
    DNS Speed Tester - find the fastest DNS resolver from where you are.

    Every resolver is measured with TCP and UDP lookups, random-subdomain
    lookups and ICMP echo, and the results are combined into one latency.
    """
    settings = get_settings()
    updates = {}
    if log_level:
        updates["log_level"] = log_level
    if json_logs:
        updates["json_logs"] = True
    if data_dir:
        updates["data_dir"] = data_dir
    if updates:
        settings = settings.model_copy(update=updates)

    configure_logging(level=settings.log_level, json_logs=settings.json_logs)
    ctx.obj = {"settings": settings}


@main.command()
@click.option("--domain", "-d", help="Test domain (domain or display name); default www.baidu.com")
@click.option("--random", "use_random", is_flag=True, help="Test against the random cache-busting domain")
@click.option(
    "--resolver", "-r",
    multiple=True,
    help="Only test this resolver (by name, can specify multiple)",
)
@click.option(
    "--custom-resolver", "-c",
    multiple=True,
    help="Also test this resolver IP for this run only",
)
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file path (JSON or CSV based on extension)",
)
@click.option("--json", "as_json", is_flag=True, help="Output results as JSON to stdout")
@click.option("--quiet", "-q", is_flag=True, help="Suppress progress output")
@click.option(
    "--no-bind",
    is_flag=True,
    help="Send DNS probes to the system resolver instead of the resolver under test",
)
@click.pass_context
def run(
    ctx: click.Context,
    domain: Optional[str],
    use_random: bool,
    resolver: tuple,
    custom_resolver: tuple,
    output: Optional[Path],
    as_json: bool,
    quiet: bool,
    no_bind: bool,
):
    """
    Run a latency test across DNS resolvers.

    Examples:

    \b
      # Test all resolvers against the default domain
      dns-speedtester run

    \b
      # Compare specific resolvers on a chosen domain
      dns-speedtester run -d www.google.com -r "Google DNS" -r Quad9

    \b
      # Add an ad-hoc resolver and export results
      dns-speedtester run -c 192.168.1.1 -o results.csv
    """
    if no_bind:
        ctx.obj["settings"] = ctx.obj["settings"].model_copy(update={"bind_to_resolver": False})

    session = _session(ctx)

    try:
        if use_random:
            target = next(d for d in session.test_domains if d.category == RANDOM_CATEGORY)
            session.selected_domain = target
        elif domain:
            session.select_domain(domain)
    except (ValueError, StopIteration) as e:
        _fail(str(e) or "No random test domain available")

    if resolver:
        wanted = {name.lower() for name in resolver}
        known = {r.name.lower() for r in session.resolvers}
        unknown = wanted - known
        if unknown:
            _fail(f"Unknown resolver(s): {', '.join(sorted(unknown))}")
        session.resolvers = [r for r in session.resolvers if r.name.lower() in wanted]

    for ip in custom_resolver:
        try:
            session.resolvers.append(create_custom_resolver(f"Custom {ip}", ip))
        except ValueError as e:
            _fail(str(e))

    if not session.resolvers:
        _fail("No resolvers to test")

    target_domain = session.selected_domain.domain

    if quiet or as_json:
        result = asyncio.run(session.run(target_domain))
    else:
        console = Console(stderr=True)
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            console=console,
            transient=True,
        ) as progress:
            observer = ProgressObserver(progress, target_domain)
            result = asyncio.run(session.run(target_domain, observer))

    if as_json:
        click.echo(JSONOutput.format(result))
    elif not quiet:
        RichConsoleOutput.print(result)

    if output:
        if output.suffix.lower() == ".csv":
            CSVOutput.save(result, output)
        else:
            output = output.with_suffix(".json")
            JSONOutput.save(result, output)
        if not quiet and not as_json:
            click.echo(f"Results saved to {output}")


@main.command()
@click.pass_context
def list_available(ctx: click.Context):
    """List all DNS resolvers (built-in and custom)."""
    session = _session(ctx)
    console = Console()
    console.print(RichConsoleOutput.resolver_table(session.resolvers, title="Available DNS Resolvers"))
    console.print("[dim]* custom resolver[/dim]")


@main.command()
@click.pass_context
def domains(ctx: click.Context):
    """List all test domains (built-in and custom)."""
    session = _session(ctx)
    console = Console()
    console.print(RichConsoleOutput.domain_table(session.test_domains, session.selected_domain))
    console.print("[dim]* custom domain[/dim]")


@main.command()
@click.argument("name")
@click.argument("primary")
@click.argument("secondary", required=False)
@click.pass_context
def add_server(ctx: click.Context, name: str, primary: str, secondary: Optional[str]):
    """Add a custom DNS server."""
    session = _session(ctx)
    try:
        server = session.add_custom_server(name, primary, secondary)
    except ValueError as e:
        _fail(str(e))
    click.echo(f"Added custom DNS server: {server.name} ({', '.join(server.addresses)})")


@main.command()
@click.argument("name")
@click.pass_context
def remove_server(ctx: click.Context, name: str):
    """Remove a custom DNS server."""
    session = _session(ctx)
    try:
        server = session.remove_custom_server(name)
    except ValueError as e:
        _fail(str(e))
    click.echo(f"Removed custom DNS server: {server.name}")


@main.command()
@click.argument("name")
@click.argument("domain")
@click.pass_context
def add_domain(ctx: click.Context, name: str, domain: str):
    """Add a custom test domain."""
    session = _session(ctx)
    try:
        test_domain = session.add_custom_domain(name, domain)
    except ValueError as e:
        _fail(str(e))
    click.echo(f"Added custom test domain: {test_domain}")


@main.command()
@click.argument("domain")
@click.pass_context
def remove_domain(ctx: click.Context, domain: str):
    """Remove a custom test domain (by domain or name)."""
    session = _session(ctx)
    try:
        test_domain = session.remove_custom_domain(domain)
    except ValueError as e:
        _fail(str(e))
    click.echo(f"Removed custom test domain: {test_domain}")


if __name__ == "__main__":
    main()
