"""Turn-based dialog state machine with one bounded follow-up per question."""

from dataclasses import replace
from typing import Optional

import structlog

from shared_types import DialogAction, DialogState

from .models import DialogContext, DialogStep, ReflectionQuestion

logger = structlog.get_logger()

MIN_ANSWER_LENGTH = 20
MAX_FOLLOW_UPS = 1


class DialogStateError(Exception):
    """Raised when the dialog is driven out of order."""


class DialogStateMachine:
    """idle -> asking <-> following_up -> complete.

    Every transition is driven by one `submit_answer` call. `complete` is absorbing.
    """

    def __init__(self, questions: list[ReflectionQuestion]):
        self.context = DialogContext(questions=list(questions))

    @property
    def state(self) -> DialogState:
        return self.context.state

    @property
    def questions(self) -> list[ReflectionQuestion]:
        return self.context.questions

    @property
    def current_question(self) -> Optional[ReflectionQuestion]:
        ctx = self.context
        if ctx.current_index >= len(ctx.questions):
            return None
        return ctx.questions[ctx.current_index]

    @property
    def answers(self) -> dict[str, str]:
        return dict(self.context.answers)

    @property
    def progress(self) -> tuple[int, int]:
        total = len(self.context.questions)
        return min(self.context.current_index + 1, total), total

    def is_complete(self) -> bool:
        return self.context.state == DialogState.COMPLETE

    def start(self) -> Optional[ReflectionQuestion]:
        if self.context.state != DialogState.IDLE:
            raise DialogStateError(f"Dialog already started (state={self.context.state})")
        question = self.current_question
        self.context.state = DialogState.ASKING if question else DialogState.COMPLETE
        return question

    def submit_answer(self, answer: str) -> DialogStep:
        ctx = self.context
        if ctx.state == DialogState.IDLE:
            raise DialogStateError("Dialog not started")
        if ctx.state == DialogState.COMPLETE:
            return DialogStep(action=DialogAction.COMPLETE, message="All questions completed")

        question = self.current_question
        ctx.answers[question.id] = answer

        if (
            len(answer.strip()) < MIN_ANSWER_LENGTH
            and ctx.follow_up_count < MAX_FOLLOW_UPS
            and question.follow_up
        ):
            ctx.state = DialogState.FOLLOWING_UP
            ctx.follow_up_count += 1
            logger.debug("dialog_follow_up", question_id=question.id)
            return DialogStep(
                action=DialogAction.FOLLOW_UP,
                question=replace(question, id=f"{question.id}-followup", question=question.follow_up),
                message="Could you elaborate on that?",
            )

        ctx.current_index += 1
        ctx.follow_up_count = 0
        next_question = self.current_question
        if next_question is None:
            ctx.state = DialogState.COMPLETE
            return DialogStep(action=DialogAction.COMPLETE, message="Great! Reflection session completed.")

        ctx.state = DialogState.ASKING
        return DialogStep(action=DialogAction.NEXT, question=next_question)
