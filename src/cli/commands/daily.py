"""Daily reflection CLI command."""

import sys

import click
from rich.console import Console
from rich.markdown import Markdown

from cli.utils import get_components, run_dialog
from integrations.memory_source import ObservationFetchError
from reflection.session import ReflectionError, ReportExistsError
from timeline.dates import InvalidDateError

console = Console()


@click.command()
@click.option("-d", "--date", "day", help="Day to reflect on (YYYY-MM-DD, default today)")
@click.option("--overwrite", is_flag=True, help="Replace an existing report (a backup is kept)")
@click.option("--append", is_flag=True, help="Append to an existing report")
@click.option("--show-report", is_flag=True, help="Print the report when done")
def daily(day: str, overwrite: bool, append: bool, show_report: bool):
    """Guided reflection on one day's commits and observations."""
    if overwrite and append:
        console.print("[red]Error:[/] --overwrite and --append are mutually exclusive")
        sys.exit(1)

    c = get_components()
    try:
        session = c["reflector"].start_daily(day, overwrite=overwrite, append=append)
    except ReportExistsError as e:
        console.print(f"[yellow]{e}[/]")
        sys.exit(1)
    except (InvalidDateError, ObservationFetchError, ReflectionError) as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)

    stats = session.timeline.stats
    console.print(f"\n[bold]Reflection for {session.day}[/]")
    console.print(
        f"[dim]{len(session.timeline.events)} events | {stats.total_observations} observations | "
        f"{stats.total_commits} commits | projects: {', '.join(stats.projects_active) or 'None'}[/]"
    )

    with session:
        try:
            run_dialog(session)
        except (KeyboardInterrupt, EOFError):
            session.cancel()
            console.print("\n[yellow]Reflection cancelled.[/]")
            return
        result = session.complete()

    console.print(f"[green]Report saved:[/] {result.report_path}")
    console.print(f"[dim]{len(result.record.learnings)} learnings extracted[/]")
    if show_report:
        console.print()
        console.print(Markdown(result.report_path.read_text(encoding="utf-8")))
