"""Shared test fixtures for devreflect."""

import itertools
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from shared_types import ObservationType  # noqa: E402
from timeline.dates import start_of_day_ms  # noqa: E402
from timeline.models import Commit, FileDelta, Observation  # noqa: E402

DAY = "2026-02-03"


@pytest.fixture
def make_commit():
    """Factory for Commit records with unique 40-hex hashes."""
    counter = itertools.count(1)

    def _make(
        message: str = "feat: add feature",
        timestamp: str = f"{DAY}T10:00:00",
        files=(),
        author: str = "Dev",
        email: str = "dev@example.com",
        hash: str | None = None,
    ) -> Commit:
        # files: paths, or (path, additions, deletions) tuples
        deltas = tuple(FileDelta(*f) if isinstance(f, tuple) else FileDelta(f, 1, 1) for f in files)
        return Commit(
            hash=hash or f"{next(counter):040x}",
            message=message,
            author=author,
            email=email,
            timestamp=timestamp,
            files=deltas,
        )

    return _make


@pytest.fixture
def make_observation():
    """Factory for Observation records on DAY unless told otherwise."""
    counter = itertools.count(1)

    def _make(
        type: ObservationType = ObservationType.FEATURE,
        project: str = "myapp",
        title: str | None = "Added login form",
        narrative: str | None = None,
        day: str = DAY,
        offset_minutes: int = 60,
        **kwargs,
    ) -> Observation:
        obs_id = kwargs.pop("id", None) or next(counter)
        epoch = start_of_day_ms(day) + offset_minutes * 60_000
        return Observation(
            id=obs_id,
            session_id="sess-1",
            project=project,
            type=type,
            created_at=f"{day}T{offset_minutes // 60:02d}:{offset_minutes % 60:02d}:00",
            created_at_epoch=epoch,
            title=title,
            narrative=narrative,
            **kwargs,
        )

    return _make


@pytest.fixture
def git_repo_dir(tmp_path):
    """A directory that looks like a git repository (has .git)."""
    repo = tmp_path / "myapp"
    (repo / ".git").mkdir(parents=True)
    return repo


@pytest.fixture
def mock_httpx_client():
    """Mock httpx client; every GET succeeds with an empty JSON object."""
    mock = MagicMock()
    mock.get.return_value = MagicMock(
        status_code=200,
        is_success=True,
        json=MagicMock(return_value={}),
    )
    return mock
