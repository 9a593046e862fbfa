"""Tests for report paths, daily and project report rendering."""

from datetime import datetime

import pytest

from shared_types import Confidence, QuestionCategory, Severity, SignalType
from reflection.models import Learning, ReflectionQuestion, ReflectionRecord
from reports.daily import (
    DailyReportWriter,
    build_daily_report,
    generate_suggestions,
    learning_title,
    render_daily_markdown,
)
from reports.paths import ReportPaths, safe_name
from reports.project import (
    ProjectReportWriter,
    build_project_report,
    discussed_pitfalls,
    extract_pitfall_records,
    first_sentence,
    project_name,
    render_project_markdown,
)
from timeline.aggregator import compute_stats, merge_events
from timeline.models import DailyTimeline, PitfallSignal, ProjectData, ProjectStats

DAY = "2026-02-03"


def _learning(category, content="Indexes matter for joins.", confidence=Confidence.MEDIUM, refs=()):
    return Learning(category=category, content=content, confidence=confidence, source_refs=tuple(refs))


@pytest.fixture
def paths(tmp_path):
    return ReportPaths(tmp_path)


# ── paths ──


class TestReportPaths:
    def test_layout(self, paths, tmp_path):
        assert paths.daily_report_path(DAY) == tmp_path / "daily" / f"{DAY}.md"
        assert paths.project_report_path("web/api") == tmp_path / "projects" / "project-summary-web_api.md"

    def test_safe_name(self):
        assert safe_name('a<b>c:"d|e?*') == "a_b_c__d_e__"

    def test_list_daily_reports_filters_and_sorts(self, paths):
        paths.ensure_dirs()
        for name in ("2026-02-03.md", "2026-01-15.md", "2026-02-01-backup-20260201.md", "notes.md"):
            (paths.daily_dir / name).write_text("x")
        assert [p.name for p in paths.list_daily_reports()] == ["2026-01-15.md", "2026-02-03.md"]
        assert [p.name for p in paths.list_daily_reports(since="2026-02-01")] == ["2026-02-03.md"]

    def test_list_without_directory(self, paths):
        assert paths.list_daily_reports() == []

    def test_backup_daily(self, paths):
        assert paths.backup_daily(DAY) is None
        paths.ensure_dirs()
        paths.daily_report_path(DAY).write_text("original")
        backup = paths.backup_daily(DAY)
        assert backup.name == f"{DAY}-backup-{datetime.now():%Y%m%d}.md"
        assert backup.read_text() == "original"


# ── daily ──


class TestDailyReport:
    @pytest.fixture
    def timeline(self, make_observation, make_commit):
        observations = [make_observation(id=7, project="myapp"), make_observation(id=8, project="api")]
        commits = [make_commit("fix: race"), make_commit("feat: export")]
        return DailyTimeline(
            date=DAY,
            events=merge_events(observations, commits),
            stats=compute_stats(observations, commits),
        )

    def test_build_groups_learnings_and_refs(self, timeline):
        record = ReflectionRecord(
            started_at="t",
            questions=[],
            date=DAY,
            learnings=[
                _learning(QuestionCategory.TECHNICAL),
                _learning(QuestionCategory.DECISION),
                _learning(QuestionCategory.TECHNICAL, "Second one."),
            ],
        )
        report = build_daily_report(timeline, record)
        assert report.active_projects == 2
        assert report.total_commits == 2
        assert report.total_observations == 2
        assert len(report.technical_learnings) == 2
        assert len(report.decision_analysis) == 1
        assert report.efficiency_insights == []
        assert report.observation_refs == [7, 8]
        assert len(report.commit_refs) == 2
        assert report.primary_focus == {"feature": 3, "bugfix": 1}

    def test_render(self, timeline):
        record = ReflectionRecord(
            started_at="t",
            questions=[],
            learnings=[_learning(QuestionCategory.TECHNICAL, refs=["observation#7"])],
        )
        text = render_daily_markdown(build_daily_report(timeline, record))
        assert text.startswith(f"# Daily Reflection - {DAY}")
        assert "- **Primary Focus:** feature (75%), bugfix (25%)" in text
        assert "### 1. Indexes matter for joins" in text
        assert "- **Source:** observation#7" in text
        assert "*No specific decisions analyzed today.*" in text
        assert "- **Observations:** #7, #8" in text
        assert "Powered by" not in text

    def test_suggestions(self, make_commit):
        timeline = DailyTimeline(
            date=DAY, events=merge_events([], [make_commit(f"fix: bug {i}") for i in range(4)])
        )
        suggestions = generate_suggestions([_learning(QuestionCategory.EFFICIENCY)], timeline)
        assert suggestions[0].startswith("Review today's efficiency insights")
        assert suggestions[-1] == "Fixed multiple bugs today, consider adding more test cases"
        assert generate_suggestions([], DailyTimeline(date=DAY)) == [
            "Maintain your current work rhythm and keep moving forward"
        ]

    @pytest.mark.parametrize(
        "content,title",
        [
            ("", "(No content)"),
            ("Short title, then more", "Short title"),
            ("A single clause that runs well past thirty characters", "A single clause that runs well..."),
            ("Compact", "Compact"),
        ],
    )
    def test_learning_title(self, content, title):
        assert learning_title(_learning(QuestionCategory.TECHNICAL, content)) == title

    def test_writer_save_and_append(self, paths, timeline):
        writer = DailyReportWriter(paths)
        report = build_daily_report(timeline, ReflectionRecord(started_at="t", questions=[]))
        with pytest.raises(FileNotFoundError):
            writer.append(report)

        path = writer.save(report)
        writer.append(report)
        text = path.read_text()
        assert text.count(f"# Daily Reflection - {DAY}") == 2
        assert "## Additional Reflection (" in text


# ── project ──


class TestProjectReport:
    @pytest.fixture
    def data(self, make_commit, make_observation):
        return ProjectData(
            repos=["/src/web"],
            commits=[make_commit("fix: a", hash="1" * 40), make_commit("feat: b", hash="2" * 40)],
            observations=[make_observation(id=3)],
            pitfalls=[
                PitfallSignal(SignalType.REVERT, DAY, ["11111111"], Severity.HIGH, "Revert commit: a"),
                PitfallSignal(SignalType.FIX, DAY, ["22222222"], Severity.LOW, "Fix: b"),
                PitfallSignal(SignalType.HIGH_FREQUENCY, DAY, ["33333333"], Severity.MEDIUM, "File x hot", file="x"),
            ],
            stats=ProjectStats(
                total_commits=2,
                time_span_start="2026-01-01",
                time_span_end=DAY,
                contributors=["Ann", "Bob"],
                core_files=["x", "y"],
            ),
        )

    @pytest.fixture
    def record(self):
        questions = [
            ReflectionQuestion("pq-1", QuestionCategory.DECISION, "?", context="Project contains 2 commits"),
            ReflectionQuestion("pq-2", QuestionCategory.PITFALL, "?", related_commits=["11111111"]),
            ReflectionQuestion("pq-3", QuestionCategory.LEARNING, "?"),
        ]
        return ReflectionRecord(
            started_at="t",
            questions=questions,
            answers={
                "pq-1": "Moved to an event queue. It decoupled the services nicely.",
                "pq-2": "The revert happened because the schema change broke old clients.",
                "pq-3": "too short",
            },
            learnings=[_learning(QuestionCategory.EFFICIENCY, "Ship smaller migrations")],
        )

    def test_project_name(self):
        assert project_name(["/src/web"]) == "web"
        assert project_name(["/src/web", "/src/api"]) == "web_api"

    def test_first_sentence(self):
        assert first_sentence("Short one. And more.") == "Short one."
        assert first_sentence("x" * 60) == "x" * 40 + "..."

    def test_pitfall_records_skip_discussed_and_low(self, record, data):
        records = extract_pitfall_records(record, data)
        assert [r.title for r in records] == [
            "The revert happened because the schema c...",
            "File x hot",
        ]
        assert records[1].description == "Auto-detected: high_frequency"

    def test_discussed_pitfalls(self, record, data):
        assert [s.type for s in discussed_pitfalls(record, data)] == ["revert"]
        record.answers["pq-2"] = "short"
        assert discussed_pitfalls(record, data) == []

    def test_daily_reflections_listed(self, record, data):
        data.daily_reports = ["/data/daily/2026-01-20.md", "/data/daily/2026-02-01.md"]
        text = render_project_markdown(build_project_report(data.repos, data, record))
        assert "- **Daily Reflections:** 2026-01-20, 2026-02-01" in text

    def test_build_and_render(self, record, data):
        report = build_project_report(data.repos, data, record)
        assert report.project_name == "web"
        assert [d.title for d in report.technical_decisions] == ["Moved to an event queue."]
        assert report.technical_decisions[0].background == "Project contains 2 commits"
        assert report.observation_refs == [3]
        assert report.commit_refs == ["11111111", "22222222"]

        text = render_project_markdown(report)
        assert text.startswith("# Project Summary - web")
        assert "- **Time Span:** 2026-01-01 ~ 2026-02-03" in text
        assert "- **Contributors:** Ann, Bob" in text
        assert "- **[efficiency]** Ship smaller migrations" in text
        assert "Repositories" not in text

    def test_refs_capped_in_render(self, data, record):
        report = build_project_report(data.repos, data, record)
        report.commit_refs = [f"{i:08x}" for i in range(12)]
        text = render_project_markdown(report)
        assert "00000009..." in text
        assert "0000000a" not in text

    def test_writer_backs_up_previous(self, paths, data, record):
        writer = ProjectReportWriter(paths)
        report = build_project_report(data.repos, data, record)
        first = writer.save(report)
        second = writer.save(report)
        assert first == second
        assert list(paths.backup_dir.glob("project-web-backup-*.md"))
