"""Project summary report: decisions, pitfall records, learnings."""

import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import structlog

from shared_types import QuestionCategory, Severity
from reflection.models import Learning, ReflectionRecord
from timeline.models import PitfallSignal, ProjectData, ProjectStats

from .paths import ReportPaths

logger = structlog.get_logger()

MIN_RECORD_ANSWER = 20
MAX_LISTED_REFS = 10

_SENTENCE_RE = re.compile(r"^[^.!?]+[.!?]?")


def project_name(repos: list[str]) -> str:
    """Basename of the single repo, or basenames joined by `_`."""
    return "_".join(Path(r).name for r in repos)


def first_sentence(text: str) -> str:
    match = _SENTENCE_RE.match(text)
    if match and len(match.group(0)) < 50:
        return match.group(0)
    return text[:40] + "..."


@dataclass
class TechnicalDecision:
    title: str
    background: str
    choice: str


@dataclass
class PitfallRecord:
    title: str
    description: str
    related_commits: list[str] = field(default_factory=list)


@dataclass
class ProjectReport:
    project_name: str
    repos: list[str]
    generated_at: str
    stats: ProjectStats
    technical_decisions: list[TechnicalDecision] = field(default_factory=list)
    pitfall_records: list[PitfallRecord] = field(default_factory=list)
    learnings: list[Learning] = field(default_factory=list)
    observation_refs: list[int] = field(default_factory=list)
    commit_refs: list[str] = field(default_factory=list)
    daily_reports: list[str] = field(default_factory=list)


def _answered(record: ReflectionRecord, category: QuestionCategory):
    for question in record.questions:
        if question.category != category:
            continue
        answer = record.answers.get(question.id)
        if answer and len(answer) > MIN_RECORD_ANSWER:
            yield question, answer


def discussed_pitfalls(record: ReflectionRecord, data: ProjectData) -> list[PitfallSignal]:
    """Detected signals sharing a commit with an answered pitfall question."""
    hashes = {h for question, _ in _answered(record, QuestionCategory.PITFALL) for h in question.related_commits}
    return [s for s in data.pitfalls if hashes.intersection(s.commits)]


def extract_pitfall_records(record: ReflectionRecord, data: ProjectData) -> list[PitfallRecord]:
    """Answered pitfall questions, then detected non-low signals nobody talked about."""
    records = [
        PitfallRecord(
            title=first_sentence(answer),
            description=answer,
            related_commits=list(question.related_commits),
        )
        for question, answer in _answered(record, QuestionCategory.PITFALL)
    ]
    discussed = discussed_pitfalls(record, data)
    for signal in data.pitfalls:
        if signal.severity == Severity.LOW or signal in discussed:
            continue
        records.append(
            PitfallRecord(
                title=signal.description,
                description=f"Auto-detected: {signal.type}",
                related_commits=list(signal.commits),
            )
        )
    return records


def build_project_report(repos: list[str], data: ProjectData, record: ReflectionRecord) -> ProjectReport:
    decisions = [
        TechnicalDecision(title=first_sentence(answer), background=question.context or "", choice=answer)
        for question, answer in _answered(record, QuestionCategory.DECISION)
    ]
    return ProjectReport(
        project_name=project_name(repos),
        repos=list(repos),
        generated_at=datetime.now().isoformat(),
        stats=data.stats,
        technical_decisions=decisions,
        pitfall_records=extract_pitfall_records(record, data),
        learnings=list(record.learnings),
        observation_refs=[o.id for o in data.observations],
        commit_refs=[c.short_hash for c in data.commits],
        daily_reports=list(data.daily_reports),
    )


def _capped(items: list[str]) -> str:
    text = ", ".join(items[:MAX_LISTED_REFS])
    return text + "..." if len(items) > MAX_LISTED_REFS else text


def render_project_markdown(report: ProjectReport) -> str:
    stats = report.stats
    lines = [
        f"# Project Summary - {report.project_name}",
        "",
        "## Project Overview",
        f"- **Time Span:** {stats.time_span_start} ~ {stats.time_span_end}",
        f"- **Total Commits:** {stats.total_commits}",
        f"- **Contributors:** {', '.join(stats.contributors)}",
        f"- **Core Files:** {', '.join(stats.core_files[:5])}",
    ]
    if len(report.repos) > 1:
        lines.append(f"- **Repositories:** {', '.join(Path(r).name for r in report.repos)}")
    lines.append("")

    lines.append("## Technical Decisions")
    if report.technical_decisions:
        for i, decision in enumerate(report.technical_decisions, 1):
            lines.append(f"### {i}. {decision.title}")
            if decision.background:
                lines.append(f"- **Background:** {decision.background}")
            lines.append(f"- **Choice:** {decision.choice}")
            lines.append("")
    else:
        lines += ["*No specific technical decisions recorded*", ""]

    lines.append("## Pitfall Records")
    if report.pitfall_records:
        for i, pitfall in enumerate(report.pitfall_records, 1):
            lines.append(f"### {i}. {pitfall.title}")
            lines.append(f"- **Description:** {pitfall.description}")
            if pitfall.related_commits:
                lines.append(f"- **Related Commits:** {', '.join(pitfall.related_commits)}")
            lines.append("")
    else:
        lines += ["*No specific pitfalls recorded*", ""]

    lines.append("## Learnings")
    if report.learnings:
        lines.extend(f"- **[{l.category}]** {l.content}" for l in report.learnings)
    else:
        lines.append("*No specific learnings recorded*")
    lines.append("")

    lines.append("## Data References")
    if report.observation_refs:
        lines.append(f"- **Observations:** {_capped([f'#{i}' for i in report.observation_refs])}")
    if report.commit_refs:
        lines.append(f"- **Commits:** {_capped(report.commit_refs)}")
    if report.daily_reports:
        lines.append(f"- **Daily Reflections:** {_capped([Path(p).stem for p in report.daily_reports])}")
    lines += ["", "---", f"*Generated at: {report.generated_at}*"]
    return "\n".join(lines)


class ProjectReportWriter:
    def __init__(self, paths: ReportPaths):
        self.paths = paths

    def save(self, report: ProjectReport) -> Path:
        """Write the summary, backing up any previous one for the same project."""
        self.paths.ensure_dirs()
        path = self.paths.project_report_path(report.project_name)
        if path.exists():
            self.paths.backup_project(report.project_name)
        path.write_text(render_project_markdown(report), encoding="utf-8")
        logger.info("project_report_saved", path=str(path))
        return path
