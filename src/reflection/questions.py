"""Reflection question generation for daily and project-level dialogs."""

from dataclasses import dataclass

from shared_types import EventSource, ObservationType, QuestionCategory, Severity
from timeline.models import DailyTimeline, Observation, ProjectData

from .models import ReflectionQuestion


@dataclass(frozen=True)
class QuestionTemplate:
    template: str
    follow_up: str


TECHNICAL_QUESTIONS = (
    QuestionTemplate(
        "What new knowledge did you learn about {topic} today?",
        "How can this knowledge be applied to other scenarios?",
    ),
    QuestionTemplate(
        "What technical details about {topic} impressed you the most?",
        "How do you plan to deepen your understanding of this area?",
    ),
    QuestionTemplate(
        "Which technical problem was the most challenging today? How did you solve it?",
        "What would you do differently next time you encounter a similar problem?",
    ),
    QuestionTemplate(
        "What did you learn from the code you modified today?",
        "How will these learnings influence your future coding habits?",
    ),
)

DECISION_QUESTIONS = (
    QuestionTemplate(
        "What important technical decisions did you make today?",
        "What were the main trade-offs for these decisions?",
    ),
    QuestionTemplate(
        "How did you evaluate different options for the {topic} decision?",
        "Looking back at this decision, would you make a different choice?",
    ),
    QuestionTemplate(
        "Was there any decision today that made you hesitate? Why?",
        "How did you ultimately make your choice?",
    ),
    QuestionTemplate(
        "If you could start over, what decisions would you make differently in today's work?",
        "What insights does this reflection provide for the future?",
    ),
)

EFFICIENCY_QUESTIONS = (
    QuestionTemplate(
        "Which part of today's work took the most time?",
        "What methods could improve efficiency in this area?",
    ),
    QuestionTemplate(
        "Were you blocked by anything today? How did you resolve it?",
        "How can similar blockers be avoided in the future?",
    ),
    QuestionTemplate(
        "Looking back at today's workflow, what could be optimized?",
        "How do you plan to implement these optimizations?",
    ),
    QuestionTemplate(
        "How was your work rhythm today? Were there any particularly productive or unproductive periods?",
        "How can you use this insight to plan tomorrow's work?",
    ),
)

TEMPLATES = {
    QuestionCategory.TECHNICAL: TECHNICAL_QUESTIONS,
    QuestionCategory.DECISION: DECISION_QUESTIONS,
    QuestionCategory.EFFICIENCY: EFFICIENCY_QUESTIONS,
}

DAILY_CATEGORIES = (QuestionCategory.TECHNICAL, QuestionCategory.DECISION, QuestionCategory.EFFICIENCY)
FALLBACK_TOPIC = "today's work"
MAX_TOPICS = 10

PROJECT_FOLLOW_UPS = {
    QuestionCategory.DECISION: "Can you be more specific about which technology? "
    "Why did you choose it over other alternatives?",
    QuestionCategory.PITFALL: "What was the root cause of this issue? How long did it take to resolve?",
    QuestionCategory.LEARNING: "Can you give a specific example? "
    "How will this learning influence your future work?",
}


def question_count_for(event_count: int) -> int:
    if event_count < 5:
        return 3
    if event_count <= 15:
        return 5
    return 8


def extract_topics(timeline: DailyTimeline) -> list[str]:
    """Distinct topics in first-seen order: event types, title words, observation concepts."""
    topics: dict[str, None] = {}
    for event in timeline.events:
        topics.setdefault(event.type)
        for word in [w for w in event.title.split() if len(w) > 3][:3]:
            topics.setdefault(word)
        if event.source == EventSource.MEMORY and isinstance(event.details, Observation):
            for concept in (event.details.concepts or [])[:3]:
                topics.setdefault(concept)
    return list(topics)[:MAX_TOPICS]


class QuestionGenerator:
    """Builds the daily question set from a timeline."""

    def generate(self, timeline: DailyTimeline) -> list[ReflectionQuestion]:
        count = question_count_for(len(timeline.events))
        topics = extract_topics(timeline)

        questions = [self._build(category, topics, i) for i, category in enumerate(DAILY_CATEGORIES)]
        while len(questions) < count:
            index = len(questions)
            questions.append(self._build(DAILY_CATEGORIES[index % 3], topics, index))
        return questions

    def _build(self, category: QuestionCategory, topics: list[str], index: int) -> ReflectionQuestion:
        templates = TEMPLATES[category]
        template = templates[index % len(templates)]
        topic = topics[index % len(topics)] if topics else FALLBACK_TOPIC
        return ReflectionQuestion(
            id=f"q-{category}-{index}",
            category=category,
            question=template.template.replace("{topic}", topic),
            follow_up=template.follow_up,
        )


def generate_project_questions(data: ProjectData) -> list[ReflectionQuestion]:
    """Project retrospective questions driven by stats and detected pitfalls."""
    questions: list[ReflectionQuestion] = []

    def add(category: QuestionCategory, text: str, **kwargs) -> None:
        questions.append(
            ReflectionQuestion(
                id=f"pq-{len(questions) + 1}",
                category=category,
                question=text,
                follow_up=PROJECT_FOLLOW_UPS[category],
                **kwargs,
            )
        )

    stats = data.stats
    add(
        QuestionCategory.DECISION,
        "What key technical decisions did you make in this project? What were your considerations at the time?",
        context=f"Project contains {stats.total_commits} commits, core files: {', '.join(stats.core_files[:5])}",
    )

    if data.pitfalls:
        high = [p for p in data.pitfalls if p.severity == Severity.HIGH]
        pitfall_context = "; ".join(p.description for p in high) if high else data.pitfalls[0].description
        add(
            QuestionCategory.PITFALL,
            "What unexpected problems did you encounter during development? What was the most painful issue?",
            context=f"Detected issue signals: {pitfall_context}",
            related_commits=[h for p in data.pitfalls for h in p.commits][:5],
        )
        for pitfall in data.pitfalls[:2]:
            if pitfall.file:
                add(
                    QuestionCategory.PITFALL,
                    f"About {pitfall.file}, I noticed it was modified multiple times. What issue occurred?",
                    context=pitfall.description,
                    related_commits=list(pitfall.commits),
                )
    else:
        add(
            QuestionCategory.PITFALL,
            "What challenges did you encounter during development? How did you resolve them?",
        )

    add(
        QuestionCategory.LEARNING,
        "What did this project teach you? If you could do it again, what would you do differently?",
        context=f"Time span: {stats.time_span_start} ~ {stats.time_span_end}",
    )

    bugfixes = [o for o in data.observations if o.type == ObservationType.BUGFIX]
    if bugfixes:
        add(
            QuestionCategory.PITFALL,
            "Which bugs were caused by initial design flaws? How can they be avoided next time?",
            context=f"Detected {len(bugfixes)} bugfix records",
            related_observations=[o.id for o in bugfixes[:3]],
        )

    return questions
