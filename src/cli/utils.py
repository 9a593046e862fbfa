"""Shared CLI utilities."""

from typing import Optional

import structlog
from rich.console import Console

from cli.config import load_config_model
from cli.config_models import ReflectConfig

console = Console()
logger = structlog.get_logger()


def make_aggregator_factory(config: ReflectConfig):
    """Factory building a fresh TimelineAggregator per session."""
    from integrations.memory_source import MemoryServiceClient
    from reports.paths import ReportPaths
    from timeline.aggregator import TimelineAggregator

    def factory(project_paths: list[str]) -> TimelineAggregator:
        return TimelineAggregator(
            MemoryServiceClient.from_config(config.memory),
            project_paths=project_paths or None,
            report_paths=ReportPaths(config.paths.data_dir),
            history_limit=config.git.history_limit,
            sample_threshold=config.aggregation.sample_threshold,
            core_file_count=config.aggregation.core_file_count,
        )

    return factory


def get_profile_storage(config: Optional[ReflectConfig] = None):
    """Get ProfileStorage instance from config."""
    from profiles.storage import ProfileStorage

    config = config or load_config_model()
    return ProfileStorage(config.paths.profile)


def get_components():
    """Initialize all components from config."""
    from reflection.session import Reflector
    from reports.paths import ReportPaths

    config = load_config_model()
    profile_storage = get_profile_storage(config)
    report_paths = ReportPaths(config.paths.data_dir)
    aggregator_factory = make_aggregator_factory(config)

    return {
        "config": config,
        "profile_storage": profile_storage,
        "report_paths": report_paths,
        "aggregator_factory": aggregator_factory,
        "reflector": Reflector(aggregator_factory, profile_storage, report_paths),
    }


def run_dialog(session, ask=None) -> None:
    """Drive a session's dialog from the terminal until it completes."""
    from rich.markup import escape
    from rich.prompt import Prompt

    from shared_types import DialogAction

    ask = ask or (lambda: Prompt.ask("[bold green]>[/]", default="", show_default=False))
    question = session.current_question()
    while question is not None:
        current, total = session.progress
        console.print(f"\n[cyan]\\[{current}/{total}][/] [bold]{escape(question.question)}[/]")
        if question.context:
            console.print(f"[dim]{escape(question.context)}[/]")
        step = session.submit_answer(ask())
        if step.action == DialogAction.COMPLETE:
            console.print(f"\n[green]{step.message}[/]")
            return
        if step.action == DialogAction.FOLLOW_UP:
            console.print(f"[yellow]{step.message}[/]")
        question = step.question
