"""Shared enums and types for devreflect."""

from enum import StrEnum


class ObservationType(StrEnum):
    DECISION = "decision"
    BUGFIX = "bugfix"
    FEATURE = "feature"
    REFACTOR = "refactor"
    DISCOVERY = "discovery"
    CHANGE = "change"


class EventSource(StrEnum):
    MEMORY = "claude-mem"
    GIT = "git"


class AvailabilityMode(StrEnum):
    FULL = "full"
    API_ONLY = "api-only"
    DB_ONLY = "db-only"
    GIT_ONLY = "git-only"
    UNAVAILABLE = "unavailable"


class SignalType(StrEnum):
    REVERT = "revert"
    FIX = "fix"
    HOTFIX = "hotfix"
    HIGH_FREQUENCY = "high_frequency"
    MASSIVE_REFACTOR = "massive_refactor"
    BUGFIX_OBSERVATION = "bugfix_observation"


class Severity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Confidence(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class QuestionCategory(StrEnum):
    TECHNICAL = "technical"
    DECISION = "decision"
    EFFICIENCY = "efficiency"
    PITFALL = "pitfall"
    LEARNING = "learning"


class DialogState(StrEnum):
    IDLE = "idle"
    ASKING = "asking"
    WAITING = "waiting"
    FOLLOWING_UP = "following_up"
    COMPLETE = "complete"


class DialogAction(StrEnum):
    FOLLOW_UP = "follow_up"
    NEXT = "next"
    COMPLETE = "complete"


class TechnicalLevel(StrEnum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"
    UNKNOWN = "unknown"
