"""External sources: git history and the memory service."""

from .git import CommitHistoryReader, CommitQuery, get_commits_from_repos, parse_log_output
from .memory_source import (
    Availability,
    MemoryServiceClient,
    ObservationFetchError,
    normalize_observation,
)

__all__ = [
    "Availability",
    "CommitHistoryReader",
    "CommitQuery",
    "MemoryServiceClient",
    "ObservationFetchError",
    "get_commits_from_repos",
    "normalize_observation",
    "parse_log_output",
]
