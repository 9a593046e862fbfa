"""Learning extraction from dialog answers using lexical heuristics."""

import re

from shared_types import Confidence, EventSource, QuestionCategory
from timeline.models import DailyTimeline, Observation
from timeline.rules import REALIZATION_RULE

from .models import Learning, ReflectionQuestion

MIN_LEARNING_LENGTH = 10
MAX_CONTENT_LENGTH = 200
MAX_SOURCE_REFS = 5

_FIRST_SENTENCE_RE = re.compile(r"^[^.!?]+[.!?]")
_FILENAME_RE = re.compile(r"[\w/-]+\.\w+")


def extract_content(answer: str) -> str:
    trimmed = answer.strip()
    if len(trimmed) <= MAX_CONTENT_LENGTH:
        return trimmed
    match = _FIRST_SENTENCE_RE.match(trimmed)
    if match:
        return match.group(0)
    return trimmed[:MAX_CONTENT_LENGTH] + "..."


def determine_confidence(answer: str) -> Confidence:
    length = len(answer.strip())
    if length > 100:
        return Confidence.HIGH if REALIZATION_RULE.matches(answer) else Confidence.MEDIUM
    if length > 50:
        return Confidence.MEDIUM
    return Confidence.LOW


def find_source_refs(answer: str, timeline: DailyTimeline) -> list[str]:
    """Cite observations whose modified files are mentioned; else the first event."""
    mentioned = set(_FILENAME_RE.findall(answer))
    refs = []
    if mentioned:
        for event in timeline.events:
            obs = event.details
            if event.source != EventSource.MEMORY or not isinstance(obs, Observation):
                continue
            if mentioned.intersection(obs.files_modified or []):
                refs.append(f"observation#{obs.id}")
    if not refs and timeline.events:
        refs.append(timeline.events[0].id)
    return refs[:MAX_SOURCE_REFS]


class LearningExtractor:
    def extract(
        self,
        questions: list[ReflectionQuestion],
        answers: dict[str, str],
        timeline: DailyTimeline,
    ) -> list[Learning]:
        learnings = []
        for question in questions:
            answer = answers.get(question.id)
            if not answer or len(answer.strip()) < MIN_LEARNING_LENGTH:
                continue
            learnings.append(
                Learning(
                    category=question.category,
                    content=extract_content(answer),
                    confidence=determine_confidence(answer),
                    source_refs=tuple(find_source_refs(answer, timeline)),
                )
            )
        return learnings


_PROJECT_CATEGORY_MAP = {
    QuestionCategory.DECISION: QuestionCategory.DECISION,
    QuestionCategory.PITFALL: QuestionCategory.TECHNICAL,
    QuestionCategory.LEARNING: QuestionCategory.EFFICIENCY,
}


def extract_project_learnings(
    questions: list[ReflectionQuestion], answers: dict[str, str]
) -> list[Learning]:
    """Learnings from a project retrospective; refs come from the question's evidence."""
    by_id = {q.id: q for q in questions}
    learnings = []
    for question_id, answer in answers.items():
        question = by_id.get(question_id)
        if question is None or len(answer) < 20:
            continue
        content = answer[:MAX_CONTENT_LENGTH] + "..." if len(answer) > MAX_CONTENT_LENGTH else answer
        refs = list(question.related_commits) + [f"obs-{i}" for i in question.related_observations]
        learnings.append(
            Learning(
                category=_PROJECT_CATEGORY_MAP.get(question.category, QuestionCategory.TECHNICAL),
                content=content,
                confidence=Confidence.HIGH if len(answer) > 100 else Confidence.MEDIUM,
                source_refs=tuple(refs),
            )
        )
    return learnings
