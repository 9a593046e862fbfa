"""Tests for commit classification rule tables and day helpers."""

import pytest

from timeline.dates import InvalidDateError, end_of_day_ms, parse_day, start_of_day_ms
from timeline.rules import (
    COMMIT_TYPE_RULES,
    FIX_RULE,
    REVERT_RULE,
    first_match,
    infer_commit_type,
    is_high_signal,
)


@pytest.mark.parametrize(
    "message,expected",
    [
        ("fix: null pointer", "bugfix"),
        ("Squash the login bug", "bugfix"),
        ("feat: oauth", "feature"),
        ("Add retry to client", "feature"),
        ("refactor: split module", "refactor"),
        ("docs: update readme", "docs"),
        ("test: cover parser", "test"),
        ("chore: bump deps", "chore"),
        ("build: pin python", "chore"),
        ("Initial import", "change"),
    ],
)
def test_infer_commit_type(message, expected):
    assert infer_commit_type(message) == expected


def test_first_matching_rule_wins():
    # bugfix is listed before feature and test
    assert infer_commit_type("fix: add missing test") == "bugfix"
    assert first_match(COMMIT_TYPE_RULES, "nothing here") is None


@pytest.mark.parametrize(
    "message,expected",
    [
        ("fix: crash", True),
        ("Revert \"feat: x\"", True),
        ("Merge branch 'main'", True),
        ("urgent hotfix for prod", True),
        ("feat: new page", False),
        ("prefix fix in middle", False),
    ],
)
def test_is_high_signal(message, expected):
    assert is_high_signal(message) is expected


def test_revert_rule_forms():
    assert REVERT_RULE.matches('Revert "feat: add cache"')
    assert REVERT_RULE.matches("chore: revert: bad migration")
    assert not REVERT_RULE.matches("undo the cache change")


def test_fix_rule_requires_conventional_prefix():
    assert FIX_RULE.matches("fix(api): handle 404")
    assert FIX_RULE.matches("hotfix: patch prod")
    assert FIX_RULE.matches("bugfix: typo")
    assert not FIX_RULE.matches("fixed the thing")
    assert not FIX_RULE.matches("feat: fix: nested")


class TestDates:
    def test_parse_day_valid(self):
        assert parse_day("2026-02-03").isoformat() == "2026-02-03"

    @pytest.mark.parametrize("value", ["2026/02/03", "yesterday", "2026-13-01", ""])
    def test_parse_day_invalid(self, value):
        with pytest.raises(InvalidDateError, match="Expected YYYY-MM-DD"):
            parse_day(value)

    def test_day_bounds_cover_whole_day(self):
        start, end = start_of_day_ms("2026-02-03"), end_of_day_ms("2026-02-03")
        assert end - start == 24 * 3600 * 1000 - 1
