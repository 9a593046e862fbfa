"""Data models for commits, observations and merged timelines."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

from shared_types import EventSource, ObservationType, Severity, SignalType

SHORT_HASH_LEN = 8


@dataclass(frozen=True)
class FileDelta:
    path: str
    additions: int = 0
    deletions: int = 0


@dataclass(frozen=True)
class Commit:
    """A parsed commit. Aggregate counts are always derived from `files`."""

    hash: str
    message: str
    author: str
    email: str
    timestamp: str  # ISO-8601 author date as emitted by git
    files: tuple[FileDelta, ...] = ()
    repo_path: Optional[str] = None

    @property
    def files_changed(self) -> int:
        return len(self.files)

    @property
    def additions(self) -> int:
        return sum(f.additions for f in self.files)

    @property
    def deletions(self) -> int:
        return sum(f.deletions for f in self.files)

    @property
    def short_hash(self) -> str:
        return self.hash[:SHORT_HASH_LEN]

    @property
    def day(self) -> str:
        return self.timestamp.split("T")[0]

    @property
    def subject(self) -> str:
        return self.message.split("\n")[0]

    @property
    def epoch_ms(self) -> int:
        try:
            return int(datetime.fromisoformat(self.timestamp).timestamp() * 1000)
        except ValueError:
            return 0


@dataclass
class Observation:
    """A structured note recorded by the memory service."""

    id: int
    session_id: str
    project: str
    type: ObservationType
    created_at: str
    created_at_epoch: int
    title: Optional[str] = None
    subtitle: Optional[str] = None
    narrative: Optional[str] = None
    facts: Optional[list[str]] = None
    concepts: Optional[list[str]] = None
    files_read: Optional[list[str]] = None
    files_modified: Optional[list[str]] = None
    prompt_number: Optional[int] = None

    @property
    def day(self) -> str:
        if self.created_at:
            return self.created_at.split("T")[0]
        if self.created_at_epoch:
            return datetime.fromtimestamp(self.created_at_epoch / 1000).strftime("%Y-%m-%d")
        return ""


@dataclass
class TimelineEvent:
    id: str
    source: EventSource
    timestamp: int  # epoch millis
    type: str
    title: str
    summary: str
    details: Union[Commit, Observation]


@dataclass
class TimelineStats:
    total_observations: int = 0
    total_commits: int = 0
    projects_active: list[str] = field(default_factory=list)
    by_type: dict[str, int] = field(default_factory=dict)
    by_project: dict[str, int] = field(default_factory=dict)


@dataclass
class DailyTimeline:
    date: str
    events: list[TimelineEvent] = field(default_factory=list)
    stats: TimelineStats = field(default_factory=TimelineStats)


@dataclass
class PitfallSignal:
    type: SignalType
    date: str
    commits: list[str]
    severity: Severity
    description: str
    file: Optional[str] = None


@dataclass
class ProjectStats:
    total_commits: int = 0
    total_observations: int = 0
    time_span_start: str = "unknown"
    time_span_end: str = "unknown"
    contributors: list[str] = field(default_factory=list)
    core_files: list[str] = field(default_factory=list)
    by_type: dict[str, int] = field(default_factory=dict)


@dataclass
class ProjectData:
    repos: list[str]
    commits: list[Commit] = field(default_factory=list)
    observations: list[Observation] = field(default_factory=list)
    daily_reports: list[str] = field(default_factory=list)
    pitfalls: list[PitfallSignal] = field(default_factory=list)
    stats: ProjectStats = field(default_factory=ProjectStats)
