"""CLI command tests using Click CliRunner.

Strategy: mock get_components at each command module's import point to avoid
touching the real memory service, git or data dir. Each test patches exactly
what it needs.
"""

from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from cli.config_models import ReflectConfig
from cli.main import cli
from cli.utils import run_dialog
from integrations.memory_source import Availability
from profiles.storage import ProfileStorage
from reflection.session import Reflector
from reports.paths import ReportPaths
from shared_types import AvailabilityMode, Severity, SignalType
from timeline.aggregator import compute_stats, merge_events
from timeline.models import DailyTimeline, PitfallSignal, ProjectData, ProjectStats

DAY = "2026-02-03"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def default_config():
    with patch("cli.main.load_config_model", return_value=ReflectConfig()):
        yield


@pytest.fixture
def timeline(make_commit, make_observation):
    observations = [make_observation(title="Chose sqlite for cache")]
    commits = [make_commit("fix: cache eviction", files=["src/cache.py"])]
    return DailyTimeline(
        date=DAY,
        events=merge_events(observations, commits),
        stats=compute_stats(observations, commits),
    )


@pytest.fixture
def aggregator(timeline):
    agg = MagicMock()
    agg.check_availability.return_value = Availability.from_flags(True, True)
    agg.get_daily_timeline.return_value = timeline
    agg.project_paths = ["/work/app"]
    return agg


@pytest.fixture
def components(tmp_path, aggregator):
    """Fake components dict matching cli.utils.get_components."""
    storage = ProfileStorage(tmp_path / "profile.json")
    report_paths = ReportPaths(tmp_path / "data")
    factory = MagicMock(return_value=aggregator)
    return {
        "config": ReflectConfig(),
        "profile_storage": storage,
        "report_paths": report_paths,
        "aggregator_factory": factory,
        "reflector": Reflector(factory, storage, report_paths),
    }


@pytest.fixture
def patch_components(components):
    """Patch get_components everywhere it's imported."""
    targets = [
        "cli.commands.daily.get_components",
        "cli.commands.project.get_components",
        "cli.commands.pitfalls.get_components",
        "cli.commands.timeline.get_components",
        "cli.commands.status.get_components",
    ]
    patches = [patch(t, return_value=components) for t in targets]
    for p in patches:
        p.start()
    yield components
    for p in patches:
        p.stop()


def _answer_everything(session):
    run_dialog(session, ask=lambda: "Eviction order matters more than cache size for hit rate.")


# -- daily --


class TestDailyCommand:
    def test_flags_mutually_exclusive(self, runner, patch_components):
        result = runner.invoke(cli, ["daily", "--overwrite", "--append"])
        assert result.exit_code == 1
        assert "mutually exclusive" in result.output

    def test_full_reflection(self, runner, patch_components):
        with patch("cli.commands.daily.run_dialog", side_effect=_answer_everything):
            result = runner.invoke(cli, ["daily", "-d", DAY, "--show-report"])
        assert result.exit_code == 0, result.output
        assert "Report saved" in result.output
        assert "3 learnings extracted" in result.output
        assert patch_components["report_paths"].daily_report_exists(DAY)

    def test_existing_report(self, runner, patch_components):
        paths = patch_components["report_paths"]
        paths.ensure_dirs()
        paths.daily_report_path(DAY).write_text("# old")
        result = runner.invoke(cli, ["daily", "-d", DAY])
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_invalid_date(self, runner, patch_components):
        result = runner.invoke(cli, ["daily", "-d", "yesterday"])
        assert result.exit_code == 1
        assert "YYYY-MM-DD" in result.output

    def test_interrupt_cancels(self, runner, patch_components, aggregator):
        with patch("cli.commands.daily.run_dialog", side_effect=KeyboardInterrupt):
            result = runner.invoke(cli, ["daily", "-d", DAY])
        assert result.exit_code == 0
        assert "cancelled" in result.output
        assert not patch_components["report_paths"].daily_report_exists(DAY)
        aggregator.close.assert_called_once()


# -- project --


class TestProjectCommand:
    @pytest.fixture
    def project_data(self, git_repo_dir, make_commit):
        return ProjectData(
            repos=[str(git_repo_dir)],
            commits=[make_commit("feat: initial")],
            stats=ProjectStats(total_commits=1, contributors=["Dev"]),
        )

    def test_full_reflection(self, runner, patch_components, aggregator, git_repo_dir, tmp_path, project_data):
        aggregator.aggregate_project.return_value = project_data
        missing = tmp_path / "missing"
        with patch("cli.commands.project.run_dialog", side_effect=_answer_everything):
            result = runner.invoke(cli, ["project", str(git_repo_dir), str(missing)])
        assert result.exit_code == 0, result.output
        assert "Skipped" in result.output
        assert "Report saved" in result.output
        assert patch_components["report_paths"].project_report_path("myapp").exists()

    def test_no_valid_repos(self, runner, patch_components, tmp_path):
        result = runner.invoke(cli, ["project", str(tmp_path / "nope")])
        assert result.exit_code == 1
        assert "Invalid repository paths" in result.output

    def test_requires_argument(self, runner, patch_components):
        result = runner.invoke(cli, ["project"])
        assert result.exit_code == 2


# -- pitfalls / timeline / status --


class TestInspectionCommands:
    def test_pitfalls_table(self, runner, patch_components, aggregator, git_repo_dir):
        aggregator.aggregate_project.return_value = ProjectData(
            repos=[str(git_repo_dir)],
            pitfalls=[PitfallSignal(SignalType.REVERT, DAY, ["abcd1234"], Severity.HIGH, "Revert commit: x")],
        )
        result = runner.invoke(cli, ["pitfalls", str(git_repo_dir)])
        assert result.exit_code == 0, result.output
        assert "revert" in result.output
        assert "abcd1234" in result.output
        aggregator.close.assert_called_once()

    def test_pitfalls_none(self, runner, patch_components, aggregator, git_repo_dir):
        aggregator.aggregate_project.return_value = ProjectData(repos=[str(git_repo_dir)])
        result = runner.invoke(cli, ["pitfalls", str(git_repo_dir)])
        assert "No pitfall signals" in result.output

    def test_pitfalls_rejects_non_repo_paths(self, runner, patch_components, aggregator, tmp_path):
        result = runner.invoke(cli, ["pitfalls", str(tmp_path / "nope")])
        assert result.exit_code == 1
        assert "Invalid repository paths" in result.output
        patch_components["aggregator_factory"].assert_not_called()
        aggregator.aggregate_project.assert_not_called()

    def test_pitfalls_skips_non_repo_paths(self, runner, patch_components, aggregator, git_repo_dir, tmp_path):
        aggregator.aggregate_project.return_value = ProjectData(repos=[str(git_repo_dir)])
        result = runner.invoke(cli, ["pitfalls", str(git_repo_dir), str(tmp_path / "nope")])
        assert result.exit_code == 0, result.output
        assert "Skipped" in result.output
        aggregator.aggregate_project.assert_called_once_with([str(git_repo_dir.resolve())], None)

    def test_timeline(self, runner, patch_components):
        result = runner.invoke(cli, ["timeline", DAY])
        assert result.exit_code == 0, result.output
        assert "Chose sqlite for cache" in result.output
        assert "fix: cache eviction" in result.output

    def test_timeline_empty(self, runner, patch_components, aggregator):
        aggregator.get_daily_timeline.return_value = DailyTimeline(date=DAY)
        result = runner.invoke(cli, ["timeline", DAY])
        assert "No work records" in result.output

    def test_status(self, runner, patch_components, aggregator):
        availability = Availability.from_flags(False, False)
        availability.mode = AvailabilityMode.GIT_ONLY
        aggregator.check_availability.return_value = availability
        result = runner.invoke(cli, ["status"])
        assert result.exit_code == 0, result.output
        assert "git-only" in result.output
        assert "/work/app" in result.output


# -- profile --


class TestProfileCommands:
    @pytest.fixture
    def storage(self, tmp_path):
        storage = ProfileStorage(tmp_path / "profile.json")
        with patch("cli.commands.profile.get_profile_storage", return_value=storage):
            yield storage

    def test_show_without_profile(self, runner, storage):
        result = runner.invoke(cli, ["profile", "show"])
        assert "No profile yet" in result.output

    def test_add_and_remove_project(self, runner, storage, git_repo_dir):
        result = runner.invoke(cli, ["profile", "add-project", str(git_repo_dir), "--role", "owner"])
        assert "Added" in result.output
        assert storage.project_paths() == [str(Path(git_repo_dir).resolve())]

        result = runner.invoke(cli, ["profile", "add-project", str(git_repo_dir)])
        assert "Already tracked" in result.output

        result = runner.invoke(cli, ["profile", "remove-project", str(git_repo_dir)])
        assert "Removed" in result.output
        assert storage.project_paths() == []

    def test_set_domain_and_show(self, runner, storage):
        runner.invoke(cli, ["profile", "set-domain", "databases", "advanced"])
        result = runner.invoke(cli, ["profile", "show"])
        assert result.exit_code == 0
        assert "databases" in result.output

    def test_set_domain_rejects_unknown_level(self, runner, storage):
        result = runner.invoke(cli, ["profile", "set-domain", "databases", "wizard"])
        assert result.exit_code == 2

    def test_correct_parses_json_values(self, runner, storage):
        result = runner.invoke(
            cli, ["profile", "correct", "technical_level.confidence", "0.8", "--reason", "calibrated"]
        )
        assert result.exit_code == 0, result.output
        assert storage.load().technical_level.confidence == 0.8

    def test_correct_invalid(self, runner, storage):
        result = runner.invoke(cli, ["profile", "correct", "technical_level.overall", "guru"])
        assert result.exit_code == 1
        assert "Invalid value" in result.output


# -- run_dialog --


def test_run_dialog_drives_session_to_completion():
    question = SimpleNamespace(question="What did you learn?", context="ctx")
    session = MagicMock()
    session.current_question.return_value = question
    session.progress = (1, 1)
    session.submit_answer.return_value = SimpleNamespace(action="complete", message="done", question=None)

    run_dialog(session, ask=lambda: "an answer")

    session.submit_answer.assert_called_once_with("an answer")


def test_config_error_exits(runner):
    with patch("cli.main.load_config_model", side_effect=ValueError("bad port")):
        result = runner.invoke(cli, ["status"])
    assert result.exit_code == 1
    assert "Config error" in result.output
