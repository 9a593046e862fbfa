"""Data source status CLI command."""

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components
from integrations.git import CommitHistoryReader
from shared_types import AvailabilityMode

console = Console()

MODE_NOTES = {
    AvailabilityMode.FULL: "[green]full[/] (worker API + local database)",
    AvailabilityMode.API_ONLY: "[green]api-only[/]",
    AvailabilityMode.DB_ONLY: "[yellow]db-only[/] (degraded: using local database)",
    AvailabilityMode.GIT_ONLY: "[yellow]git-only[/] (memory service unavailable)",
    AvailabilityMode.UNAVAILABLE: "[red]unavailable[/]",
}


def _mark(ok: bool) -> str:
    return "[green]✓[/]" if ok else "[red]✗[/]"


@click.command()
def status():
    """Show which data sources are reachable and which projects are tracked."""
    c = get_components()
    paths = c["profile_storage"].project_paths()
    aggregator = c["aggregator_factory"](paths)
    try:
        availability = aggregator.check_availability()
        project_paths = aggregator.project_paths
    finally:
        aggregator.close()

    console.print(f"\n[bold]Mode:[/] {MODE_NOTES.get(availability.mode, str(availability.mode))}")
    console.print(f"  {_mark(availability.api)} memory service API")
    console.print(f"  {_mark(availability.db)} memory service database")

    table = Table(title="Tracked projects", show_header=True)
    table.add_column("Path")
    table.add_column("Git", justify="center")
    for path in project_paths:
        table.add_row(path, _mark(CommitHistoryReader(path).is_repo()))
    console.print(table)

    reports = c["report_paths"].list_daily_reports()
    console.print(f"\n[dim]{len(reports)} daily reports in {c['report_paths'].daily_dir}[/]")
