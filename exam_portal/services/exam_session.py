# exam_portal/services/exam_session.py
import logging
import time
from typing import Callable, Optional

from ..config.settings import ExamSettings
from ..schemas.exam_schemas import (
    ActivityAction,
    AttemptState,
    ComposedExam,
    ExamPhase,
    Question,
)
from .activity_log import ActivityLogger
from .scoring_service import ScoringService

logger = logging.getLogger(__name__)


class ExamSessionMachine:
    """Transitions of one exam attempt: not_started -> in_progress -> completed.

    Every transition takes an AttemptState and returns the resulting state;
    the caller owns loading and saving it. Time remaining is derived from the
    wall clock on each read, so no timer runs between requests.
    """

    def __init__(
        self,
        settings: ExamSettings,
        compose_exam: Callable[[], ComposedExam],
        activity: ActivityLogger,
        scoring: ScoringService,
        claim_submission: Optional[Callable[[], bool]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings
        self.compose_exam = compose_exam
        self.activity = activity
        self.scoring = scoring
        self.claim_submission = claim_submission
        self.clock = clock

    @property
    def duration(self) -> int:
        return self.settings.exam_duration_seconds

    def fresh(self) -> AttemptState:
        return AttemptState.fresh(self.duration)

    def _load_exam(self, state: AttemptState, exam: ComposedExam) -> None:
        state.shuffled_questions = dict(exam.questions)
        state.original_ids = exam.original_ids()
        state.questions_loaded = exam.count

    def start(self, state: AttemptState) -> AttemptState:
        if state.phase != ExamPhase.NOT_STARTED:
            return state

        exam = self.compose_exam()
        new_state = AttemptState(
            started=True,
            start_time=int(self.clock()),
            time_remaining=self.duration,
            current_question=1,
        )
        self._load_exam(new_state, exam)

        self.activity.log(ActivityAction.EXAM_STARTED)
        logger.info(f"Exam started with {exam.count} questions")
        return new_state

    def ensure_composed(self, state: AttemptState) -> AttemptState:
        """Resume path: reuse the stored exam, compose only if none was recorded."""
        if state.phase != ExamPhase.IN_PROGRESS or state.shuffled_questions:
            return state
        new_state = state.model_copy(deep=True)
        self._load_exam(new_state, self.compose_exam())
        return new_state

    def navigate(self, state: AttemptState, target: int) -> AttemptState:
        if state.phase != ExamPhase.IN_PROGRESS:
            return state
        if not 1 <= target <= len(state.shuffled_questions):
            return state
        new_state = state.model_copy(deep=True)
        new_state.current_question = target
        return new_state

    def answer(self, state: AttemptState, sequence: int, letter: Optional[str]) -> AttemptState:
        if state.phase != ExamPhase.IN_PROGRESS:
            return state
        if sequence not in state.shuffled_questions or not letter:
            return state
        new_state = state.model_copy(deep=True)
        new_state.answers[sequence] = letter
        self.activity.log(ActivityAction.ANSWER_SAVED, {"question_id": sequence, "answer": letter})
        return new_state

    def flag(self, state: AttemptState, sequence: int) -> AttemptState:
        if state.phase != ExamPhase.IN_PROGRESS or sequence not in state.shuffled_questions:
            return state
        new_state = state.model_copy(deep=True)
        if sequence in new_state.flagged:
            new_state.flagged.discard(sequence)
        else:
            new_state.flagged.add(sequence)
        return new_state

    def remaining(self, state: AttemptState) -> int:
        if state.phase != ExamPhase.IN_PROGRESS or state.start_time is None:
            return max(0, state.time_remaining)
        elapsed = int(self.clock()) - state.start_time
        return max(0, self.duration - elapsed)

    def tick(self, state: AttemptState) -> AttemptState:
        if state.phase != ExamPhase.IN_PROGRESS:
            return state
        new_state = state.model_copy(deep=True)
        new_state.time_remaining = self.remaining(state)
        if new_state.time_remaining <= 0:
            logger.info("Exam time expired; submitting automatically")
            return self.submit(new_state)
        return new_state

    def sync_time(self, state: AttemptState, seconds: int) -> AttemptState:
        if state.phase != ExamPhase.IN_PROGRESS:
            return state
        new_state = state.model_copy(deep=True)
        new_state.time_remaining = min(self.duration, max(0, seconds))
        return new_state

    def submit(self, state: AttemptState) -> AttemptState:
        if not state.started or state.submitted:
            return state

        new_state = state.model_copy(deep=True)
        new_state.time_remaining = self.remaining(state)
        exam = new_state.exam
        score = self.scoring.score(exam, new_state.answers)
        new_state.completed = True
        new_state.submitted = True
        new_state.score = score

        if self.claim_submission is not None and not self.claim_submission():
            logger.info("Exam already submitted by a concurrent request; skipping result write")
            return new_state

        self.scoring.persist_result(new_state, exam, score)
        self.activity.log(ActivityAction.EXAM_SUBMITTED, {"score": score})
        logger.info(f"Exam submitted with score {score}")
        return new_state

    def reset(self, state: AttemptState) -> AttemptState:
        self.activity.log(ActivityAction.EXAM_RESET)
        return self.fresh()

    def current_question(self, state: AttemptState) -> Optional[Question]:
        questions = state.shuffled_questions
        return questions.get(state.current_question) or questions.get(1)

    def progress_percentage(self, state: AttemptState) -> int:
        total = len(state.shuffled_questions)
        if total == 0:
            return 0
        return int(len(state.answers) / total * 100 + 0.5)
