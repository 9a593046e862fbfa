"""Daily reflection report: build from a finished record, render to Markdown."""

import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import structlog

from shared_types import EventSource, ObservationType, QuestionCategory
from reflection.models import Learning, ReflectionRecord
from timeline.models import Commit, DailyTimeline, Observation

from .paths import ReportPaths

logger = structlog.get_logger()

BUGFIX_SUGGESTION_THRESHOLD = 3
TITLE_MAX = 30

_TITLE_RE = re.compile(r"^[^,.\n]+")


@dataclass
class DailyReport:
    date: str
    generated_at: str
    active_projects: int
    total_commits: int
    total_observations: int
    primary_focus: dict[str, int] = field(default_factory=dict)
    technical_learnings: list[Learning] = field(default_factory=list)
    decision_analysis: list[Learning] = field(default_factory=list)
    efficiency_insights: list[Learning] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    observation_refs: list[int] = field(default_factory=list)
    commit_refs: list[str] = field(default_factory=list)


def generate_suggestions(learnings: list[Learning], timeline: DailyTimeline) -> list[str]:
    suggestions = []
    categories = {l.category for l in learnings}
    if QuestionCategory.EFFICIENCY in categories:
        suggestions.append("Review today's efficiency insights and consider applying them tomorrow")
    if QuestionCategory.TECHNICAL in categories:
        suggestions.append("Consolidate today's technical learnings, consider writing a learning note")
    bugfixes = sum(1 for e in timeline.events if e.type == ObservationType.BUGFIX)
    if bugfixes > BUGFIX_SUGGESTION_THRESHOLD:
        suggestions.append("Fixed multiple bugs today, consider adding more test cases")
    if not suggestions:
        suggestions.append("Maintain your current work rhythm and keep moving forward")
    return suggestions


def build_daily_report(timeline: DailyTimeline, record: ReflectionRecord) -> DailyReport:
    by_category: dict[str, list[Learning]] = {}
    for learning in record.learnings:
        by_category.setdefault(learning.category, []).append(learning)

    observation_refs, commit_refs = [], []
    for event in timeline.events:
        if event.source == EventSource.MEMORY and isinstance(event.details, Observation):
            observation_refs.append(event.details.id)
        elif event.source == EventSource.GIT and isinstance(event.details, Commit):
            commit_refs.append(event.details.short_hash)

    return DailyReport(
        date=timeline.date,
        generated_at=datetime.now().isoformat(),
        active_projects=len(timeline.stats.projects_active),
        total_commits=timeline.stats.total_commits,
        total_observations=timeline.stats.total_observations,
        primary_focus=dict(Counter(e.type for e in timeline.events)),
        technical_learnings=by_category.get(QuestionCategory.TECHNICAL, []),
        decision_analysis=by_category.get(QuestionCategory.DECISION, []),
        efficiency_insights=by_category.get(QuestionCategory.EFFICIENCY, []),
        suggestions=generate_suggestions(record.learnings, timeline),
        observation_refs=observation_refs,
        commit_refs=commit_refs,
    )


def learning_title(learning: Learning) -> str:
    content = learning.content
    if not content:
        return "(No content)"
    match = _TITLE_RE.match(content)
    if match and len(match.group(0)) < TITLE_MAX:
        return match.group(0)
    if len(content) > TITLE_MAX:
        return content[:TITLE_MAX] + "..."
    return content


def render_daily_markdown(report: DailyReport) -> str:
    lines = [
        f"# Daily Reflection - {report.date}",
        "",
        "## Summary",
        f"- **Active Projects:** {report.active_projects}",
        f"- **Commits:** {report.total_commits}",
        f"- **Observations:** {report.total_observations}",
    ]
    total = sum(report.primary_focus.values())
    if total:
        top = Counter(report.primary_focus).most_common(3)
        focus = ", ".join(f"{kind} ({round(count / total * 100)}%)" for kind, count in top)
        lines.append(f"- **Primary Focus:** {focus}")
    lines.append("")

    lines.append("## Technical Learnings")
    if report.technical_learnings:
        for i, learning in enumerate(report.technical_learnings, 1):
            lines.append(f"### {i}. {learning_title(learning)}")
            lines.append(f"- **Content:** {learning.content}")
            lines.append(f"- **Confidence:** {learning.confidence}")
            if learning.source_refs:
                lines.append(f"- **Source:** {', '.join(learning.source_refs)}")
            lines.append("")
    else:
        lines += ["*No specific technical learnings recorded today.*", ""]

    lines.append("## Decision Analysis")
    if report.decision_analysis:
        for learning in report.decision_analysis:
            lines.append(f"### {learning_title(learning)}")
            lines.append(f"- **Analysis:** {learning.content}")
            lines.append(f"- **Confidence:** {learning.confidence}")
            lines.append("")
    else:
        lines += ["*No specific decisions analyzed today.*", ""]

    lines.append("## Efficiency Insights")
    if report.efficiency_insights:
        lines.extend(f"- {learning.content}" for learning in report.efficiency_insights)
    else:
        lines.append("*No specific efficiency insights recorded today.*")
    lines.append("")

    lines.append("## Tomorrow's Suggestions")
    lines.extend(f"{i}. {s}" for i, s in enumerate(report.suggestions, 1))
    lines.append("")

    lines.append("## Raw Data References")
    if report.observation_refs:
        lines.append(f"- **Observations:** {', '.join(f'#{i}' for i in report.observation_refs)}")
    if report.commit_refs:
        lines.append(f"- **Commits:** {', '.join(report.commit_refs)}")
    lines += ["", "---", f"*Generated at: {report.generated_at}*"]
    return "\n".join(lines)


class DailyReportWriter:
    def __init__(self, paths: ReportPaths):
        self.paths = paths

    def save(self, report: DailyReport) -> Path:
        self.paths.ensure_dirs()
        path = self.paths.daily_report_path(report.date)
        path.write_text(render_daily_markdown(report), encoding="utf-8")
        logger.info("daily_report_saved", path=str(path))
        return path

    def append(self, report: DailyReport) -> Path:
        """Append a further reflection to an existing day's report."""
        path = self.paths.daily_report_path(report.date)
        if not path.exists():
            raise FileNotFoundError(f"Report for {report.date} does not exist")
        separator = f"\n\n---\n\n## Additional Reflection ({datetime.now().isoformat()})\n\n"
        with open(path, "a", encoding="utf-8") as f:
            f.write(separator + render_daily_markdown(report))
        logger.info("daily_report_appended", path=str(path))
        return path
