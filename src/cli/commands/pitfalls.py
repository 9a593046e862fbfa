"""Pitfall signal CLI command."""

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components
from reflection.session import validate_repos
from shared_types import Severity
from timeline.dates import InvalidDateError

console = Console()

SEVERITY_STYLES = {Severity.HIGH: "red", Severity.MEDIUM: "yellow", Severity.LOW: "dim"}


@click.command()
@click.argument("repos", nargs=-1, required=True, type=click.Path())
@click.option("--since", help="Only history from this day (YYYY-MM-DD)")
def pitfalls(repos: tuple[str, ...], since: str):
    """Show detected pitfall signals (reverts, fix chains, churn) for repositories."""
    c = get_components()
    paths, invalid = validate_repos([str(Path(r).expanduser().resolve()) for r in repos])
    if not paths:
        console.print(
            f"[red]Error:[/] Invalid repository paths: {', '.join(invalid)}. "
            "Please ensure paths are valid git repositories."
        )
        sys.exit(1)
    if invalid:
        console.print(f"[yellow]Skipped (not git repositories):[/] {', '.join(invalid)}")

    aggregator = c["aggregator_factory"](paths)
    try:
        data = aggregator.aggregate_project(paths, since)
    except (InvalidDateError, ValueError) as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)
    finally:
        aggregator.close()

    if not data.pitfalls:
        console.print("[green]No pitfall signals detected.[/]")
        return

    table = Table(title=f"Pitfall signals ({data.stats.total_commits} commits)", show_header=True)
    table.add_column("Severity")
    table.add_column("Type", style="cyan")
    table.add_column("Date", style="dim")
    table.add_column("Description")
    table.add_column("Commits", style="dim")

    for signal in data.pitfalls:
        style = SEVERITY_STYLES.get(signal.severity, "")
        table.add_row(
            f"[{style}]{signal.severity}[/]",
            str(signal.type),
            signal.date,
            signal.description[:70],
            ", ".join(signal.commits[:3]),
        )

    console.print(table)
