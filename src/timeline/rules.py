"""Ordered rule tables for classifying commit messages and narratives.

Every rule is evaluated against the lower-cased text. Tables are evaluated
top to bottom and the first matching rule wins.
"""

from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class MessageRule:
    label: str
    prefixes: tuple[str, ...] = ()
    substrings: tuple[str, ...] = ()

    def matches(self, text: str) -> bool:
        lowered = text.lower()
        return lowered.startswith(self.prefixes) or any(s in lowered for s in self.substrings)


def first_match(rules: Iterable[MessageRule], text: str) -> Optional[MessageRule]:
    for rule in rules:
        if rule.matches(text):
            return rule
    return None


COMMIT_TYPE_RULES: tuple[MessageRule, ...] = (
    MessageRule("bugfix", prefixes=("fix",), substrings=("bug",)),
    MessageRule("feature", prefixes=("feat",), substrings=("add",)),
    MessageRule("refactor", prefixes=("refactor",), substrings=("refactor",)),
    MessageRule("docs", prefixes=("docs",), substrings=("doc",)),
    MessageRule("test", prefixes=("test",), substrings=("test",)),
    MessageRule("chore", prefixes=("chore", "build")),
)
DEFAULT_COMMIT_TYPE = "change"

# Commits matching any of these survive sampling unconditionally
HIGH_SIGNAL_RULES: tuple[MessageRule, ...] = (
    MessageRule("fix", prefixes=("fix",)),
    MessageRule("revert", prefixes=("revert",)),
    MessageRule("merge", prefixes=("merge",)),
    MessageRule("hotfix", substrings=("hotfix",)),
)

REVERT_RULE = MessageRule("revert", prefixes=("revert",), substrings=("revert:", 'revert "'))

FIX_RULE = MessageRule(
    "fix",
    prefixes=("fix:", "fix(", "hotfix:", "hotfix(", "bugfix:", "bugfix("),
)

REFACTOR_RULE = MessageRule("massive_refactor", substrings=("refactor", "rewrite", "restructure"))

ISSUE_RULE = MessageRule(
    "issue",
    substrings=("issue", "bug", "error", "problem", "fix", "broken", "failed"),
)

REALIZATION_RULE = MessageRule(
    "realization",
    substrings=("learned", "understand", "mastered", "discovered", "realized"),
)


def infer_commit_type(message: str) -> str:
    """Classify a commit message into a coarse work type."""
    rule = first_match(COMMIT_TYPE_RULES, message)
    return rule.label if rule else DEFAULT_COMMIT_TYPE


def is_high_signal(message: str) -> bool:
    return first_match(HIGH_SIGNAL_RULES, message) is not None
