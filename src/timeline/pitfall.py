"""Pitfall detection: heuristic friction signals from commits and observations."""

from collections import defaultdict

import structlog

from shared_types import ObservationType, Severity, SignalType

from .models import Commit, Observation, PitfallSignal
from .rules import FIX_RULE, ISSUE_RULE, REFACTOR_RULE, REVERT_RULE

logger = structlog.get_logger()

FIX_MERGE_THRESHOLD = 3
HIGH_FREQUENCY_MIN_TOUCHES = 3
HIGH_FREQUENCY_HIGH_TOUCHES = 5
MAX_SIGNAL_COMMITS = 5
MAX_MERGED_COMMITS = 10
MASSIVE_CHANGE_LINES = 100

_SEVERITY_RANK = {Severity.LOW: 0, Severity.MEDIUM: 1, Severity.HIGH: 2}


class PitfallDetector:
    """Stateless scans over commit and observation lists."""

    def detect(self, commits: list[Commit], observations: list[Observation]) -> list[PitfallSignal]:
        return self.detect_from_commits(commits) + self.detect_from_observations(observations)

    def detect_from_commits(self, commits: list[Commit]) -> list[PitfallSignal]:
        signals = []
        scans = [
            self._detect_reverts,
            self._detect_fixes,
            self._detect_high_frequency_files,
            self._detect_massive_refactors,
        ]
        for scan in scans:
            found = scan(commits)
            if found:
                logger.debug("pitfall_scan", scan=scan.__name__, signals=len(found))
            signals.extend(found)
        return signals

    def detect_from_observations(self, observations: list[Observation]) -> list[PitfallSignal]:
        signals = []
        for obs in observations:
            if obs.type == ObservationType.BUGFIX:
                signals.append(
                    PitfallSignal(
                        type=SignalType.BUGFIX_OBSERVATION,
                        date=obs.day,
                        commits=[],
                        severity=Severity.MEDIUM,
                        description=obs.title or obs.narrative or "Bug fix record",
                    )
                )
            elif ISSUE_RULE.matches(obs.narrative or ""):
                label = obs.title or (obs.narrative or "")[:50] or "Unknown"
                signals.append(
                    PitfallSignal(
                        type=SignalType.BUGFIX_OBSERVATION,
                        date=obs.day,
                        commits=[],
                        severity=Severity.LOW,
                        description=f"Issue record: {label}",
                    )
                )
        return signals

    def _detect_reverts(self, commits: list[Commit]) -> list[PitfallSignal]:
        return [
            PitfallSignal(
                type=SignalType.REVERT,
                date=c.day,
                commits=[c.short_hash],
                severity=Severity.HIGH,
                description=f"Revert commit: {c.message[:50]}",
            )
            for c in commits
            if REVERT_RULE.matches(c.message)
        ]

    def _detect_fixes(self, commits: list[Commit]) -> list[PitfallSignal]:
        fixes = [c for c in commits if FIX_RULE.matches(c.message)]
        if len(fixes) > FIX_MERGE_THRESHOLD:
            return [
                PitfallSignal(
                    type=SignalType.FIX,
                    date=fixes[0].day,
                    commits=[c.short_hash for c in fixes[:MAX_SIGNAL_COMMITS]],
                    severity=Severity.MEDIUM,
                    description=f"Multiple fix commits ({len(fixes)} total)",
                )
            ]
        return [
            PitfallSignal(
                type=SignalType.FIX,
                date=c.day,
                commits=[c.short_hash],
                severity=Severity.LOW,
                description=f"Fix: {c.message[:50]}",
            )
            for c in fixes
        ]

    def _detect_high_frequency_files(self, commits: list[Commit]) -> list[PitfallSignal]:
        """Same file touched 3+ times on one calendar day."""
        touches: dict[tuple[str, str], list[str]] = defaultdict(list)
        for commit in commits:
            for delta in commit.files:
                touches[(commit.day, delta.path)].append(commit.short_hash)

        signals = []
        for (day, path), hashes in touches.items():
            count = len(hashes)
            if count < HIGH_FREQUENCY_MIN_TOUCHES:
                continue
            signals.append(
                PitfallSignal(
                    type=SignalType.HIGH_FREQUENCY,
                    file=path,
                    date=day,
                    commits=hashes[:MAX_SIGNAL_COMMITS],
                    severity=Severity.HIGH if count >= HIGH_FREQUENCY_HIGH_TOUCHES else Severity.MEDIUM,
                    description=f"File {path} was modified {count} times on {day}",
                )
            )
        return signals

    def _detect_massive_refactors(self, commits: list[Commit]) -> list[PitfallSignal]:
        return [
            PitfallSignal(
                type=SignalType.MASSIVE_REFACTOR,
                date=c.day,
                commits=[c.short_hash],
                severity=Severity.MEDIUM,
                description=f"Massive refactor: +{c.additions}/-{c.deletions} ({c.message[:30]})",
            )
            for c in commits
            if c.additions > MASSIVE_CHANGE_LINES
            and c.deletions > MASSIVE_CHANGE_LINES
            and REFACTOR_RULE.matches(c.message)
        ]

    def merge_signals(self, signals: list[PitfallSignal]) -> list[PitfallSignal]:
        return merge_signals(signals)


def merge_signals(signals: list[PitfallSignal]) -> list[PitfallSignal]:
    """Collapse signals sharing (type, file) into one, keeping the strongest severity."""
    groups: dict[tuple[str, str | None], list[PitfallSignal]] = {}
    for signal in signals:
        groups.setdefault((signal.type, signal.file), []).append(signal)

    merged = []
    for group in groups.values():
        if len(group) == 1:
            merged.append(group[0])
            continue
        first = group[0]
        hashes = list(dict.fromkeys(h for s in group for h in s.commits))
        merged.append(
            PitfallSignal(
                type=first.type,
                file=first.file,
                date=first.date,
                commits=hashes[:MAX_MERGED_COMMITS],
                severity=max((s.severity for s in group), key=_SEVERITY_RANK.__getitem__),
                description=f"{first.description} ({len(group)} related signals)",
            )
        )
    return merged
