"""Markdown reports for daily and project reflections."""

from .daily import DailyReport, DailyReportWriter, build_daily_report, render_daily_markdown
from .paths import ReportPaths
from .project import (
    ProjectReport,
    ProjectReportWriter,
    build_project_report,
    project_name,
    render_project_markdown,
)

__all__ = [
    "DailyReport",
    "DailyReportWriter",
    "ProjectReport",
    "ProjectReportWriter",
    "ReportPaths",
    "build_daily_report",
    "build_project_report",
    "project_name",
    "render_daily_markdown",
    "render_project_markdown",
]
