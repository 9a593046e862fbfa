"""Data models for reflection dialogs and extracted learnings."""

from dataclasses import dataclass, field
from typing import Optional

from shared_types import Confidence, DialogAction, DialogState, QuestionCategory
from timeline.models import PitfallSignal


@dataclass
class ReflectionQuestion:
    id: str
    category: QuestionCategory
    question: str
    context: Optional[str] = None
    follow_up: Optional[str] = None
    related_commits: list[str] = field(default_factory=list)
    related_observations: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class Learning:
    category: QuestionCategory
    content: str
    confidence: Confidence
    source_refs: tuple[str, ...] = ()


@dataclass
class DialogContext:
    """Mutable dialog state; owned by exactly one DialogStateMachine."""

    questions: list[ReflectionQuestion]
    state: DialogState = DialogState.IDLE
    current_index: int = 0
    answers: dict[str, str] = field(default_factory=dict)
    follow_up_count: int = 0


@dataclass
class DialogStep:
    """Outcome of one submitted answer."""

    action: DialogAction
    question: Optional[ReflectionQuestion] = None
    message: str = ""


@dataclass
class ReflectionRecord:
    """A finished (or in-progress) reflection, daily or project-level."""

    started_at: str
    questions: list[ReflectionQuestion]
    date: Optional[str] = None
    repos: list[str] = field(default_factory=list)
    since: Optional[str] = None
    completed_at: Optional[str] = None
    answers: dict[str, str] = field(default_factory=dict)
    learnings: list[Learning] = field(default_factory=list)
    pitfalls_discussed: list[PitfallSignal] = field(default_factory=list)
