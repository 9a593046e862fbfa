"""Daily timeline CLI command."""

import sys
from datetime import datetime

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components
from integrations.memory_source import ObservationFetchError
from shared_types import EventSource
from timeline.dates import InvalidDateError, format_day

console = Console()


@click.command()
@click.argument("day", required=False)
@click.option("-n", "--limit", default=50, help="Max events to show")
def timeline(day: str, limit: int):
    """Show the merged commit/observation timeline for a day (default today)."""
    c = get_components()
    day = day or format_day()
    paths = c["profile_storage"].project_paths()
    aggregator = c["aggregator_factory"](paths)
    try:
        tl = aggregator.get_daily_timeline(day)
    except (InvalidDateError, ObservationFetchError) as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)
    finally:
        aggregator.close()

    if not tl.events:
        console.print(f"[yellow]No work records found for {day}.[/]")
        return

    table = Table(title=f"Timeline {day}", show_header=True)
    table.add_column("Time", style="dim")
    table.add_column("Source")
    table.add_column("Type", style="cyan")
    table.add_column("Title")

    for event in tl.events[:limit]:
        when = datetime.fromtimestamp(event.timestamp / 1000).strftime("%H:%M") if event.timestamp else "?"
        source = "[green]git[/]" if event.source == EventSource.GIT else "[magenta]memory[/]"
        table.add_row(when, source, str(event.type), event.title[:70])

    console.print(table)
    stats = tl.stats
    console.print(
        f"[dim]{stats.total_observations} observations | {stats.total_commits} commits | "
        f"projects: {', '.join(stats.projects_active) or 'None'}[/]"
    )
    if len(tl.events) > limit:
        console.print(f"[dim]... {len(tl.events) - limit} more events[/]")
