"""Profile CLI commands."""

import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markdown import Markdown

from cli.utils import get_profile_storage
from shared_types import TechnicalLevel

console = Console()


def _parse_value(raw: str):
    """JSON if it parses (numbers, lists, objects), else the raw string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


@click.group()
def profile():
    """View and manage your developer profile."""
    pass


@profile.command("show")
def profile_show():
    """View current profile."""
    ps = get_profile_storage()
    if not ps.exists():
        console.print("[yellow]No profile yet. It is created on your first reflection.[/]")
        return
    console.print(Markdown(ps.load().to_markdown()))
    console.print(f"[dim]Stored at: {ps.path}[/]")


@profile.command("add-project")
@click.argument("path", type=click.Path())
@click.option("--role", default="contributor", help="Your role in the project")
def profile_add_project(path: str, role: str):
    """Track a repository for daily reflections."""
    ps = get_profile_storage()
    resolved = str(Path(path).expanduser().resolve())
    if not (Path(resolved) / ".git").exists():
        console.print(f"[yellow]Warning:[/] {resolved} is not a git repository")
    if ps.add_project(resolved, role):
        console.print(f"[green]Added:[/] {resolved} ({role})")
    else:
        console.print(f"[dim]Already tracked: {resolved}[/]")


@profile.command("remove-project")
@click.argument("path", type=click.Path())
def profile_remove_project(path: str):
    """Stop tracking a repository."""
    ps = get_profile_storage()
    resolved = str(Path(path).expanduser().resolve())
    if ps.remove_project(resolved) or ps.remove_project(path):
        console.print(f"[green]Removed:[/] {path}")
    else:
        console.print(f"[yellow]Not tracked:[/] {path}")


@profile.command("set-domain")
@click.argument("domain")
@click.argument("level", type=click.Choice([lvl.value for lvl in TechnicalLevel]))
def profile_set_domain(domain: str, level: str):
    """Record your level in a technical domain."""
    ps = get_profile_storage()
    ps.add_domain(domain, TechnicalLevel(level))
    console.print(f"[green]Set:[/] {domain} = {level}")


@profile.command("correct")
@click.argument("field")
@click.argument("value")
@click.option("--reason", default="", help="Why the profile was wrong")
def profile_correct(field: str, value: str, reason: str):
    """Correct a profile field (dotted path, e.g. technical_level.overall)."""
    ps = get_profile_storage()
    try:
        ps.apply_correction(field, _parse_value(value), reason)
    except ValueError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)
    console.print(f"[green]Corrected:[/] {field}")
