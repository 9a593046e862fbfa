"""Timeline aggregator: merges memory-service observations and git commits."""

from collections import Counter
from dataclasses import replace
from pathlib import Path
from typing import Optional

import structlog

from integrations.git import CommitHistoryReader, CommitQuery
from integrations.memory_source import Availability, MemoryServiceClient, ObservationFetchError
from reports.paths import ReportPaths
from shared_types import AvailabilityMode, EventSource

from .dates import parse_day
from .models import (
    Commit,
    DailyTimeline,
    Observation,
    ProjectData,
    ProjectStats,
    TimelineEvent,
    TimelineStats,
)
from .pitfall import PitfallDetector
from .rules import infer_commit_type, is_high_signal

logger = structlog.get_logger()

SAMPLE_THRESHOLD = 200
HISTORY_LIMIT = 1000
CORE_FILE_COUNT = 10

OBSERVATION_TYPE_LABELS = {
    "decision": "Decision",
    "bugfix": "Bug Fix",
    "feature": "New Feature",
    "refactor": "Refactor",
    "discovery": "Discovery",
    "change": "Change",
}


def sample_commits(commits: list[Commit], target: int = SAMPLE_THRESHOLD) -> list[Commit]:
    """Bound a time-sorted commit list to roughly `target` entries.

    Revert/merge/fix/hotfix commits are always kept, even past the target.
    The remaining budget is filled by striding evenly through the full list.
    """
    if len(commits) <= target:
        return list(commits)

    sampled = []
    seen = set()
    for commit in commits:
        if is_high_signal(commit.message) and commit.hash not in seen:
            sampled.append(commit)
            seen.add(commit.hash)

    remaining = target - len(sampled)
    if remaining > 0:
        step = max(1, len(commits) // remaining)
        for commit in commits[::step]:
            if len(sampled) >= target:
                break
            if commit.hash not in seen:
                sampled.append(commit)
                seen.add(commit.hash)

    sampled.sort(key=lambda c: c.epoch_ms)
    return sampled


def filter_project_observations(observations: list[Observation], repos: list[str]) -> list[Observation]:
    """Observations whose project loosely matches a repo directory name.

    Substring match in either direction, case-insensitive. Short repo names
    can match unrelated projects.
    """
    names = [Path(r).name.lower() for r in repos]
    matched = []
    for obs in observations:
        project = (obs.project or "").lower()
        if any(name in project or project in name for name in names):
            matched.append(obs)
    return matched


def _observation_title(obs: Observation) -> str:
    label = OBSERVATION_TYPE_LABELS.get(obs.type, str(obs.type))
    if obs.facts:
        return f"{label}: {obs.facts[0][:50]}..."
    return f"{label} ({obs.project or 'unknown'})"


def _observation_summary(obs: Observation) -> str:
    parts = []
    if obs.facts:
        parts.append(f"Facts: {', '.join(obs.facts[:2])}")
    if obs.concepts:
        parts.append(f"Concepts: {', '.join(obs.concepts)}")
    if obs.files_modified:
        parts.append(f"Modified: {len(obs.files_modified)} files")
    return " | ".join(parts) or "No details"


def observation_to_event(obs: Observation) -> TimelineEvent:
    return TimelineEvent(
        id=f"obs-{obs.id}",
        source=EventSource.MEMORY,
        timestamp=obs.created_at_epoch,
        type=str(obs.type),
        title=obs.title or _observation_title(obs),
        summary=obs.narrative or obs.subtitle or _observation_summary(obs),
        details=obs,
    )


def commit_to_event(commit: Commit) -> TimelineEvent:
    return TimelineEvent(
        id=f"commit-{commit.short_hash}",
        source=EventSource.GIT,
        timestamp=commit.epoch_ms,
        type=infer_commit_type(commit.message),
        title=commit.subject,
        summary=f"Author: {commit.author} | Files: {commit.files_changed} | +{commit.additions}/-{commit.deletions}",
        details=commit,
    )


def merge_events(observations: list[Observation], commits: list[Commit]) -> list[TimelineEvent]:
    """Observations then commits, stably sorted by timestamp."""
    events = [observation_to_event(o) for o in observations] + [commit_to_event(c) for c in commits]
    events.sort(key=lambda e: e.timestamp)
    return events


def compute_stats(observations: list[Observation], commits: list[Commit]) -> TimelineStats:
    by_type: Counter = Counter()
    by_project: Counter = Counter()
    for obs in observations:
        by_type[str(obs.type)] += 1
        if obs.project:
            by_project[obs.project] += 1
    for commit in commits:
        by_type[infer_commit_type(commit.message)] += 1

    return TimelineStats(
        total_observations=len(observations),
        total_commits=len(commits),
        projects_active=list(by_project),
        by_type=dict(by_type),
        by_project=dict(by_project),
    )


class TimelineAggregator:
    """Builds daily timelines and project-level aggregates."""

    def __init__(
        self,
        memory: MemoryServiceClient,
        project_paths: Optional[list[str]] = None,
        report_paths: Optional[ReportPaths] = None,
        history_limit: int = HISTORY_LIMIT,
        sample_threshold: int = SAMPLE_THRESHOLD,
        core_file_count: int = CORE_FILE_COUNT,
    ):
        self.memory = memory
        self.project_paths = project_paths if project_paths is not None else [str(Path.cwd())]
        self.report_paths = report_paths
        self.history_limit = history_limit
        self.sample_threshold = sample_threshold
        self.core_file_count = core_file_count
        self.detector = PitfallDetector()

    def check_availability(self) -> Availability:
        status = self.memory.availability()
        if status.mode == AvailabilityMode.UNAVAILABLE and any(
            CommitHistoryReader(p).is_repo() for p in self.project_paths
        ):
            status.mode = AvailabilityMode.GIT_ONLY
        return status

    # ── daily ──

    def get_daily_timeline(self, day: str) -> DailyTimeline:
        """Merged, time-ordered events for one local calendar day.

        Raises InvalidDateError before any I/O; ObservationFetchError propagates.
        """
        parse_day(day)
        observations = self.memory.get_daily_observations(day)
        commits = self._daily_commits(day)
        return DailyTimeline(
            date=day,
            events=merge_events(observations, commits),
            stats=compute_stats(observations, commits),
        )

    def has_data(self, day: str) -> bool:
        return bool(self.get_daily_timeline(day).events)

    def _daily_commits(self, day: str) -> list[Commit]:
        commits = []
        for path in self.project_paths:
            reader = CommitHistoryReader(path)
            if reader.is_repo():
                commits.extend(reader.get_daily_commits(day))
        commits.sort(key=lambda c: c.epoch_ms)
        return commits

    # ── project ──

    def aggregate_project(self, repos: list[str], since: Optional[str] = None) -> ProjectData:
        if not repos:
            raise ValueError("At least one repository path is required")
        if since:
            parse_day(since)
        readers = [(repo, CommitHistoryReader(repo)) for repo in repos]
        invalid = [repo for repo, reader in readers if not reader.is_repo()]
        if len(invalid) == len(readers):
            raise ValueError(
                f"Invalid repository paths: {', '.join(invalid)}. "
                "Please ensure paths are valid git repositories."
            )
        if invalid:
            logger.info("project_repos_skipped", repos=invalid)

        commits: list[Commit] = []
        contributors: dict[str, None] = {}
        file_counts: Counter = Counter()
        earliest: Optional[str] = None
        latest: Optional[str] = None

        for repo, reader in readers:
            if repo in invalid:
                continue
            query = CommitQuery(since=f"{since} 00:00:00") if since else CommitQuery(limit=self.history_limit)
            for commit in reader.get_commits(query):
                commit = replace(commit, repo_path=repo)
                commits.append(commit)
                contributors.setdefault(commit.author)
                for delta in commit.files:
                    file_counts[delta.path] += 1
                day = commit.day
                if earliest is None or day < earliest:
                    earliest = day
                if latest is None or day > latest:
                    latest = day

        commits.sort(key=lambda c: c.epoch_ms)
        sampled = sample_commits(commits, self.sample_threshold)
        if len(sampled) != len(commits):
            logger.info("commits_sampled", total=len(commits), kept=len(sampled))

        observations = self._project_observations(repos, since or earliest, latest)
        pitfalls = self.detector.detect(commits, observations)

        by_type: Counter = Counter(infer_commit_type(c.message) for c in commits)
        for obs in observations:
            by_type[str(obs.type)] += 1

        stats = ProjectStats(
            total_commits=len(commits),
            total_observations=len(observations),
            time_span_start=earliest or "unknown",
            time_span_end=latest or "unknown",
            contributors=list(contributors),
            core_files=[path for path, _ in file_counts.most_common(self.core_file_count)],
            by_type=dict(by_type),
        )

        daily_reports = []
        if self.report_paths is not None:
            daily_reports = [str(p) for p in self.report_paths.list_daily_reports(since)]

        return ProjectData(
            repos=list(repos),
            commits=sampled,
            observations=observations,
            daily_reports=daily_reports,
            pitfalls=pitfalls,
            stats=stats,
        )

    def _project_observations(
        self, repos: list[str], date_start: Optional[str], date_end: Optional[str]
    ) -> list[Observation]:
        try:
            observations = self.memory.fetch_observations(date_start, date_end)
        except ObservationFetchError as e:
            logger.warning("project_observations_unavailable", error=str(e))
            return []
        return filter_project_observations(observations, repos)

    def close(self) -> None:
        self.memory.close()
