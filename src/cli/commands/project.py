"""Project retrospective CLI command."""

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markdown import Markdown

from cli.utils import get_components, run_dialog
from reflection.session import ReflectionError
from timeline.dates import InvalidDateError

console = Console()


@click.command()
@click.argument("repos", nargs=-1, required=True, type=click.Path())
@click.option("--since", help="Only history from this day (YYYY-MM-DD)")
@click.option("--show-report", is_flag=True, help="Print the report when done")
def project(repos: tuple[str, ...], since: str, show_report: bool):
    """Retrospective over one or more repositories' history."""
    c = get_components()
    paths = [str(Path(r).expanduser().resolve()) for r in repos]
    try:
        session = c["reflector"].start_project(paths, since=since)
    except (InvalidDateError, ReflectionError) as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)

    if session.skipped:
        console.print(f"[yellow]Skipped (not git repositories):[/] {', '.join(session.skipped)}")

    stats = session.data.stats
    console.print(f"\n[bold]Project reflection: {session.project_name}[/]")
    console.print(
        f"[dim]{stats.time_span_start} ~ {stats.time_span_end} | {stats.total_commits} commits | "
        f"{stats.total_observations} observations | {len(session.data.pitfalls)} pitfall signals[/]"
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
    if show_report:
        console.print()
        console.print(Markdown(result.report_path.read_text(encoding="utf-8")))
