"""Daily reflection engine: questions -> dialog -> learnings."""

from datetime import datetime
from typing import Optional

from timeline.models import DailyTimeline

from .dialog import DialogStateMachine
from .learning import LearningExtractor
from .models import DialogStep, ReflectionQuestion, ReflectionRecord
from .questions import QuestionGenerator


class ReflectionEngine:
    """Owns one dialog over one daily timeline."""

    def __init__(self, timeline: DailyTimeline):
        self.timeline = timeline
        self.generator = QuestionGenerator()
        self.extractor = LearningExtractor()
        questions = self.generator.generate(timeline)
        self.dialog = DialogStateMachine(questions)
        self.record = ReflectionRecord(
            date=timeline.date,
            started_at=datetime.now().isoformat(),
            questions=questions,
        )

    def start(self) -> Optional[ReflectionQuestion]:
        return self.dialog.start()

    def submit_answer(self, answer: str) -> DialogStep:
        return self.dialog.submit_answer(answer)

    def complete(self) -> ReflectionRecord:
        self.record.answers = self.dialog.answers
        self.record.completed_at = datetime.now().isoformat()
        self.record.learnings = self.extractor.extract(
            self.record.questions, self.record.answers, self.timeline
        )
        return self.record
