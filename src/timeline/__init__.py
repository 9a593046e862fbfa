"""Timeline aggregation: merge commits and observations, detect pitfalls."""

from .dates import InvalidDateError, format_day, parse_day
from .models import (
    Commit,
    DailyTimeline,
    FileDelta,
    Observation,
    PitfallSignal,
    ProjectData,
    ProjectStats,
    TimelineEvent,
    TimelineStats,
)
from .pitfall import PitfallDetector, merge_signals
from .rules import infer_commit_type

__all__ = [
    "Commit",
    "DailyTimeline",
    "FileDelta",
    "InvalidDateError",
    "Observation",
    "PitfallDetector",
    "PitfallSignal",
    "ProjectData",
    "ProjectStats",
    "TimelineEvent",
    "TimelineStats",
    "format_day",
    "infer_commit_type",
    "merge_signals",
    "parse_day",
]
