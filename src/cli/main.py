"""reflect: daily and project reflection over git history and memory-service observations."""

import sys

import click
from rich.console import Console

from cli.commands import daily, pitfalls, profile, project, status, timeline
from cli.config import load_config_model
from cli.logging_config import setup_logging

console = Console()


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON")
def cli(verbose: bool, json_logs: bool):
    """Reflect on your development work."""
    try:
        config = load_config_model()
    except ValueError as e:
        console.print(f"[red]Config error:[/] {e}")
        sys.exit(1)
    level = "DEBUG" if verbose else config.logging.level
    setup_logging(json_mode=json_logs or config.logging.json_output, level=level)


for command in (status, timeline, daily, project, pitfalls, profile):
    cli.add_command(command)


if __name__ == "__main__":
    cli()
