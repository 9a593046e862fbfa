"""Tests for git log parsing and the commit history reader."""

import shutil
import subprocess
from unittest.mock import patch

import pytest

from integrations.git import (
    LOG_FORMAT,
    CommitHistoryReader,
    CommitQuery,
    get_commits_from_repos,
    parse_log_output,
)

H1 = "a" * 40
H2 = "b" * 40


def test_parse_single_commit_with_numstat():
    output = (
        f"{H1}|feat: add login|Alice|alice@example.com|2026-02-03T10:00:00+01:00\n"
        "10\t2\tsrc/login.py\n"
        "3\t0\ttests/test_login.py\n"
    )
    commits = parse_log_output(output)
    assert len(commits) == 1
    c = commits[0]
    assert c.hash == H1
    assert c.message == "feat: add login"
    assert c.author == "Alice"
    assert c.email == "alice@example.com"
    assert c.files_changed == 2
    assert c.additions == 13
    assert c.deletions == 2
    assert c.short_hash == "aaaaaaaa"
    assert c.day == "2026-02-03"


def test_parse_subject_containing_pipes():
    output = f"{H1}|fix: handle a|b case|Bob|bob@example.com|2026-02-03T10:00:00Z\n"
    commits = parse_log_output(output)
    assert commits[0].message == "fix: handle a|b case"
    assert commits[0].author == "Bob"


def test_parse_binary_files_count_zero():
    output = f"{H1}|chore: add logo|A|a@x.io|2026-02-03T10:00:00Z\n-\t-\tassets/logo.png\n"
    c = parse_log_output(output)[0]
    assert c.files_changed == 1
    assert c.additions == 0
    assert c.deletions == 0


def test_parse_multiple_commits_and_blank_lines():
    output = (
        f"{H1}|first|A|a@x.io|2026-02-03T10:00:00Z\n"
        "1\t1\ta.py\n"
        "\n"
        f"{H2}|second|B|b@x.io|2026-02-03T11:00:00Z\n"
        "\n"
        "2\t0\tb.py\n"
    )
    commits = parse_log_output(output)
    assert [c.hash for c in commits] == [H1, H2]
    assert commits[1].files[0].path == "b.py"


def test_parse_skips_garbage_lines():
    output = f"garbage line\n{H1}|msg|A|a@x.io|2026-02-03T10:00:00Z\nnot a numstat line\n"
    commits = parse_log_output(output)
    assert len(commits) == 1
    assert commits[0].files == ()


def test_parse_empty_output():
    assert parse_log_output("") == []


def test_commit_query_args():
    args = CommitQuery(since="2026-02-03 00:00:00", until="2026-02-03 23:59:59", limit=50).to_args()
    assert args[:2] == [f"--format={LOG_FORMAT}", "--numstat"]
    assert "--since=2026-02-03 00:00:00" in args
    assert "--until=2026-02-03 23:59:59" in args
    assert "-n50" in args


def test_reader_non_repo_returns_empty(tmp_path):
    reader = CommitHistoryReader(tmp_path)
    assert not reader.is_repo()
    assert reader.get_commits() == []
    assert reader.get_repo_stats().total_commits == 0


def test_reader_git_failure_returns_empty(git_repo_dir):
    reader = CommitHistoryReader(git_repo_dir)
    err = subprocess.CalledProcessError(128, ["git", "log"], stderr="fatal: bad revision")
    with patch("integrations.git.subprocess.run", side_effect=err):
        assert reader.get_commits() == []


def test_daily_commits_query_bounds(git_repo_dir):
    reader = CommitHistoryReader(git_repo_dir)
    with patch.object(reader, "_git", return_value="") as git:
        reader.get_daily_commits("2026-02-03")
    args = git.call_args.args
    assert "--since=2026-02-03 00:00:00" in args
    assert "--until=2026-02-03 23:59:59" in args


def test_commits_from_repos_tagged_and_sorted(tmp_path):
    repo_a, repo_b = tmp_path / "a", tmp_path / "b"
    for repo in (repo_a, repo_b):
        (repo / ".git").mkdir(parents=True)
    outputs = {
        str(repo_a): f"{H1}|later|A|a@x.io|2026-02-03T12:00:00+00:00\n",
        str(repo_b): f"{H2}|earlier|B|b@x.io|2026-02-03T09:00:00+00:00\n",
    }

    def fake_git(self, *args):
        return outputs[str(self.repo_path)]

    with patch.object(CommitHistoryReader, "_git", fake_git):
        commits = get_commits_from_repos([str(repo_a), str(repo_b)])

    assert [c.message for c in commits] == ["earlier", "later"]
    assert commits[0].repo_path == str(repo_b)


@pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
def test_real_repository(tmp_path):
    repo = tmp_path / "real"
    repo.mkdir()
    env = ["-c", "user.name=Tester", "-c", "user.email=tester@example.com", "-c", "commit.gpgsign=false"]

    def git(*args):
        subprocess.run(["git", *env, *args], cwd=repo, check=True, capture_output=True)

    git("init", "-q")
    (repo / "app.py").write_text("print('hi')\n")
    git("add", "app.py")
    git("commit", "-q", "-m", "feat: add app | entrypoint")
    (repo / "app.py").write_text("print('hello')\n")
    git("commit", "-q", "-am", "fix: greeting")

    reader = CommitHistoryReader(repo)
    commits = reader.get_commits()
    assert [c.message for c in commits] == ["fix: greeting", "feat: add app | entrypoint"]
    assert commits[1].files[0].path == "app.py"
    assert commits[1].additions == 1

    stats = reader.get_repo_stats()
    assert stats.total_commits == 2
    assert stats.contributors == ["Tester"]
