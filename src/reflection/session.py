"""Reflection sessions: the service that starts them and the handles that drive them.

A `Reflector` owns at most one live session. `start_daily` / `start_project`
return a handle; the caller drives the dialog through the handle and finishes
with `complete()` (report written) or `cancel()`. Starting a
new session closes the previous handle first. Any call on a closed handle
raises `SessionClosedError`.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional

import structlog

from profiles.storage import ProfileStorage
from reports.daily import DailyReport, DailyReportWriter, build_daily_report
from reports.paths import ReportPaths
from reports.project import (
    ProjectReport,
    ProjectReportWriter,
    build_project_report,
    discussed_pitfalls,
    project_name,
)
from shared_types import AvailabilityMode
from timeline.aggregator import TimelineAggregator
from timeline.dates import format_day, parse_day
from timeline.models import DailyTimeline, ProjectData

from .dialog import DialogStateMachine
from .engine import ReflectionEngine
from .learning import extract_project_learnings
from .models import DialogStep, ReflectionQuestion, ReflectionRecord
from .questions import generate_project_questions

logger = structlog.get_logger()

AggregatorFactory = Callable[[list[str]], TimelineAggregator]


class ReflectionError(Exception):
    """A reflection session could not be started or finished."""


class ReportExistsError(ReflectionError):
    """A daily report already exists and neither overwrite nor append was requested."""


class SessionClosedError(ReflectionError):
    """The session handle was completed, cancelled or superseded."""


def validate_repos(repo_paths: list[str]) -> tuple[list[str], list[str]]:
    """Split paths into (valid, invalid) by the presence of `.git`."""
    valid, invalid = [], []
    for path in repo_paths:
        (valid if (Path(path) / ".git").exists() else invalid).append(path)
    return valid, invalid


def get_project_name(repos: list[str]) -> str:
    return project_name(repos)


@dataclass
class SessionResult:
    record: ReflectionRecord
    report: DailyReport | ProjectReport
    report_path: Path


class _SessionHandle:
    def __init__(self, reflector: "Reflector", aggregator: TimelineAggregator, dialog: DialogStateMachine):
        self._reflector = reflector
        self._aggregator = aggregator
        self._dialog = dialog
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise SessionClosedError("Session is closed; start a new reflection")

    def current_question(self) -> Optional[ReflectionQuestion]:
        self._check_open()
        if self._dialog.is_complete():
            return None
        return self._dialog.current_question

    def submit_answer(self, answer: str) -> DialogStep:
        self._check_open()
        return self._dialog.submit_answer(answer)

    @property
    def progress(self) -> tuple[int, int]:
        self._check_open()
        return self._dialog.progress

    @property
    def is_complete(self) -> bool:
        self._check_open()
        return self._dialog.is_complete()

    @property
    def answers(self) -> dict[str, str]:
        self._check_open()
        return self._dialog.answers

    def status(self) -> dict[str, Any]:
        self._check_open()
        current, total = self._dialog.progress
        return {
            "active": True,
            "state": str(self._dialog.state),
            "progress": {"current": current, "total": total},
            "is_complete": self._dialog.is_complete(),
        }

    def cancel(self) -> None:
        self._check_open()
        logger.info("reflection_cancelled", kind=type(self).__name__)
        self.close()

    def close(self) -> None:
        """Release the aggregator. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._aggregator.close()
        self._reflector._release(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class DailySession(_SessionHandle):
    def __init__(
        self,
        reflector: "Reflector",
        aggregator: TimelineAggregator,
        timeline: DailyTimeline,
        append: bool = False,
    ):
        self.engine = ReflectionEngine(timeline)
        super().__init__(reflector, aggregator, self.engine.dialog)
        self.day = timeline.date
        self.timeline = timeline
        self.append = append
        self.engine.start()

    def status(self) -> dict[str, Any]:
        return {**super().status(), "date": self.day}

    def complete(self) -> SessionResult:
        """Extract learnings and write the report, then release the session."""
        self._check_open()
        record = self.engine.complete()
        report = build_daily_report(self.timeline, record)
        writer = DailyReportWriter(self._reflector.report_paths)
        if self.append and self._reflector.report_paths.daily_report_exists(self.day):
            path = writer.append(report)
        else:
            path = writer.save(report)
        logger.info("daily_reflection_completed", date=self.day, learnings=len(record.learnings))
        self.close()
        return SessionResult(record=record, report=report, report_path=path)


class ProjectSession(_SessionHandle):
    def __init__(
        self,
        reflector: "Reflector",
        aggregator: TimelineAggregator,
        data: ProjectData,
        since: Optional[str] = None,
        skipped: Optional[list[str]] = None,
    ):
        questions = generate_project_questions(data)
        dialog = DialogStateMachine(questions)
        super().__init__(reflector, aggregator, dialog)
        self.repos = list(data.repos)
        self.since = since
        self.data = data
        self.skipped = skipped or []
        self.record = ReflectionRecord(
            started_at=datetime.now().isoformat(),
            questions=questions,
            repos=self.repos,
            since=since,
        )
        dialog.start()

    @property
    def project_name(self) -> str:
        return get_project_name(self.repos)

    def status(self) -> dict[str, Any]:
        return {**super().status(), "repos": self.repos, "since": self.since}

    def complete(self) -> SessionResult:
        self._check_open()
        record = self.record
        record.answers = self._dialog.answers
        record.completed_at = datetime.now().isoformat()
        record.learnings = extract_project_learnings(record.questions, record.answers)
        record.pitfalls_discussed = discussed_pitfalls(record, self.data)
        report = build_project_report(self.repos, self.data, record)
        path = ProjectReportWriter(self._reflector.report_paths).save(report)
        logger.info("project_reflection_completed", project=report.project_name, learnings=len(record.learnings))
        self.close()
        return SessionResult(record=record, report=report, report_path=path)


class Reflector:
    """Starts daily and project reflections; holds at most one live session."""

    def __init__(
        self,
        aggregator_factory: AggregatorFactory,
        profile_storage: ProfileStorage,
        report_paths: ReportPaths,
    ):
        self.aggregator_factory = aggregator_factory
        self.profile_storage = profile_storage
        self.report_paths = report_paths
        self._active: Optional[_SessionHandle] = None

    @property
    def active(self) -> Optional[_SessionHandle]:
        return self._active

    def _release(self, handle: _SessionHandle) -> None:
        if self._active is handle:
            self._active = None

    def _close_active(self) -> None:
        if self._active is not None:
            logger.info("reflection_superseded", kind=type(self._active).__name__)
            self._active.close()

    def start_daily(self, day: Optional[str] = None, overwrite: bool = False, append: bool = False) -> DailySession:
        day = day or format_day()
        parse_day(day)
        self._close_active()

        profile = self.profile_storage.initialize()
        aggregator = self.aggregator_factory(profile.project_paths())
        try:
            availability = aggregator.check_availability()
            if availability.mode == AvailabilityMode.UNAVAILABLE:
                raise ReflectionError(
                    "Both the memory service and git data sources are unavailable. "
                    "Please ensure at least one data source is accessible."
                )
            timeline = aggregator.get_daily_timeline(day)
            if not timeline.events:
                raise ReflectionError(f"No work records found for {day}. Please select another date.")

            if self.report_paths.daily_report_exists(day):
                if not overwrite and not append:
                    raise ReportExistsError(
                        f"Report for {day} already exists. Use --overwrite to replace or --append to add."
                    )
                if overwrite:
                    self.report_paths.backup_daily(day)
        except Exception:
            aggregator.close()
            raise

        session = DailySession(self, aggregator, timeline, append=append and not overwrite)
        self._active = session
        logger.info("daily_reflection_started", date=day, mode=str(availability.mode), events=len(timeline.events))
        return session

    def start_project(self, repos: list[str], since: Optional[str] = None) -> ProjectSession:
        if since:
            parse_day(since)
        self._close_active()

        valid, invalid = validate_repos(repos)
        if not valid:
            if invalid:
                raise ReflectionError(
                    f"Invalid repository paths: {', '.join(invalid)}. "
                    "Please ensure paths are valid git repositories."
                )
            raise ReflectionError("Please provide at least one repository path.")

        self.profile_storage.initialize()
        aggregator = self.aggregator_factory(valid)
        try:
            data = aggregator.aggregate_project(valid, since)
            if not data.commits and not data.observations:
                if since:
                    raise ReflectionError(
                        f"No work records found since {since}. "
                        "Please select an earlier date or check repository paths."
                    )
                raise ReflectionError("No work records found. Please check repository paths.")
        except Exception:
            aggregator.close()
            raise

        if invalid:
            logger.warning("project_repos_skipped", repos=invalid)
        session = ProjectSession(self, aggregator, data, since=since, skipped=invalid)
        self._active = session
        logger.info(
            "project_reflection_started",
            repos=valid,
            commits=data.stats.total_commits,
            pitfalls=len(data.pitfalls),
        )
        return session
