"""Reflection dialogs: question generation, the dialog state machine, learning extraction.

Session orchestration lives in `reflection.session`, which is not imported here
because it depends on `reports`, which in turn depends on these models.
"""

from .dialog import DialogStateError, DialogStateMachine
from .engine import ReflectionEngine
from .learning import LearningExtractor, extract_project_learnings
from .models import DialogContext, DialogStep, Learning, ReflectionQuestion, ReflectionRecord
from .questions import QuestionGenerator, generate_project_questions

__all__ = [
    "DialogContext",
    "DialogStateError",
    "DialogStateMachine",
    "DialogStep",
    "Learning",
    "LearningExtractor",
    "QuestionGenerator",
    "ReflectionEngine",
    "ReflectionQuestion",
    "ReflectionRecord",
    "extract_project_learnings",
    "generate_project_questions",
]
