"""Git history reader: parses `git log --numstat` output into Commit records."""

import re
import subprocess
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

import structlog

from timeline.models import Commit, FileDelta

logger = structlog.get_logger()

LOG_FORMAT = "%H|%s|%an|%ae|%aI"

# The subject may contain "|"; author, email and date may not.
_HEADER_RE = re.compile(
    r"^(?P<hash>[0-9a-f]{40})\|(?P<message>.*)\|(?P<author>[^|]*)\|(?P<email>[^|]*)\|(?P<timestamp>[^|]*)$"
)
_NUMSTAT_RE = re.compile(r"^(?P<additions>\d+|-)\t(?P<deletions>\d+|-)\t(?P<path>.+)$")


@dataclass
class CommitQuery:
    since: Optional[str] = None  # passed to git verbatim, e.g. "2026-02-03 00:00:00"
    until: Optional[str] = None
    limit: Optional[int] = None
    author: Optional[str] = None

    def to_args(self) -> list[str]:
        args = [f"--format={LOG_FORMAT}", "--numstat"]
        if self.since:
            args.append(f"--since={self.since}")
        if self.until:
            args.append(f"--until={self.until}")
        if self.limit:
            args.append(f"-n{int(self.limit)}")
        if self.author:
            args.append(f"--author={self.author}")
        return args


@dataclass
class RepoStats:
    total_commits: int = 0
    first_commit: Optional[str] = None
    last_commit: Optional[str] = None
    contributors: list[str] = field(default_factory=list)


def _numstat_value(raw: str) -> int:
    return 0 if raw == "-" else int(raw)


def parse_log_output(output: str) -> list[Commit]:
    """Parse `--format=<LOG_FORMAT> --numstat` output.

    Lines that are neither a header nor a numstat line are skipped.
    """
    commits: list[Commit] = []
    header: Optional[dict] = None
    files: list[FileDelta] = []

    for line in output.splitlines():
        match = _HEADER_RE.match(line)
        if match:
            if header is not None:
                commits.append(Commit(**header, files=tuple(files)))
            header = match.groupdict()
            files = []
            continue
        if header is None or not line.strip():
            continue
        stat = _NUMSTAT_RE.match(line.strip("\r"))
        if stat:
            files.append(
                FileDelta(
                    path=stat.group("path"),
                    additions=_numstat_value(stat.group("additions")),
                    deletions=_numstat_value(stat.group("deletions")),
                )
            )

    if header is not None:
        commits.append(Commit(**header, files=tuple(files)))
    return commits


class CommitHistoryReader:
    """Read-only access to one repository's history."""

    def __init__(self, repo_path: str | Path = "."):
        self.repo_path = Path(repo_path).expanduser()

    def is_repo(self) -> bool:
        return (self.repo_path / ".git").exists()

    def _git(self, *args: str) -> str:
        result = subprocess.run(
            ["git", *args],
            cwd=self.repo_path,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=True,
        )
        return result.stdout

    def get_commits(self, query: Optional[CommitQuery] = None) -> list[Commit]:
        """Commits matching the query, in the order git emits them (newest first)."""
        if not self.is_repo():
            return []
        query = query or CommitQuery()
        try:
            output = self._git("log", *query.to_args())
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning("git_log_failed", repo=str(self.repo_path), error=str(e))
            return []
        return parse_log_output(output)

    def get_daily_commits(self, day: str) -> list[Commit]:
        return self.get_commits(CommitQuery(since=f"{day} 00:00:00", until=f"{day} 23:59:59"))

    def get_repo_stats(self) -> RepoStats:
        if not self.is_repo():
            return RepoStats()
        try:
            total = int(self._git("rev-list", "--count", "HEAD").strip() or 0)
            dates = self._git("log", "--format=%aI").split()
            authors = self._git("log", "--format=%an").splitlines()
        except (OSError, subprocess.SubprocessError, ValueError) as e:
            logger.warning("git_stats_failed", repo=str(self.repo_path), error=str(e))
            return RepoStats()
        return RepoStats(
            total_commits=total,
            first_commit=dates[-1] if dates else None,
            last_commit=dates[0] if dates else None,
            contributors=sorted({a for a in authors if a}),
        )


def get_commits_from_repos(repo_paths: list[str], query: Optional[CommitQuery] = None) -> list[Commit]:
    """Commits from several repositories, tagged with their repo and sorted by time."""
    commits = []
    for path in repo_paths:
        for commit in CommitHistoryReader(path).get_commits(query):
            commits.append(replace(commit, repo_path=str(path)))
    commits.sort(key=lambda c: c.epoch_ms)
    return commits
