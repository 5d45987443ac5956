# exam_portal/services/mock_exam_service.py
import logging
import random
import time
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ..config.settings import ExamSettings
from ..schemas.exam_schemas import (
    AttemptState,
    ComposedExam,
    ExamActionRequest,
    ExamContext,
    ExamPhase,
    ExamProgressView,
    ExamView,
    PublicQuestion,
    StartScreenView,
    UserProfile,
)
from .activity_log import ActivityLogger
from .exam_composer import ExamComposer
from .exam_session import ExamSessionMachine
from .question_pool import QuestionPoolLoader
from .scoring_service import ScoringService, format_seconds
from .session_store import ExamSessionStore

logger = logging.getLogger(__name__)


class MockExamService:
    def __init__(
        self,
        db: Session,
        context: ExamContext,
        session_key: str,
        settings: ExamSettings,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.db = db
        self.context = context
        self.settings = settings
        self.pool_loader = QuestionPoolLoader(db)
        self.composer = ExamComposer(
            total_target=settings.total_exam_questions,
            performance_quota=settings.performance_quota,
            minimum_viable=settings.minimum_viable_questions,
            rng=rng,
        )
        self.activity = ActivityLogger(db, context)
        self.scoring = ScoringService(db, context, settings)
        self.store = ExamSessionStore(
            db,
            session_key=session_key,
            user_id=context.user_id,
            exam_type=context.exam_type,
            duration=settings.exam_duration_seconds,
        )
        self.machine = ExamSessionMachine(
            settings,
            compose_exam=self.compose_exam,
            activity=self.activity,
            scoring=self.scoring,
            claim_submission=self.store.claim_submission,
            clock=clock,
        )

    def compose_exam(self) -> ComposedExam:
        pool = self.pool_loader.load_pool(self.context.exam_type)
        if not pool:
            logger.warning(f"No active questions for {self.context.exam_type}; using static question set")
            return self.pool_loader.load_static_fallback()
        return self.composer.compose(pool)

    def _save(self, state: AttemptState, discard_submitted: bool = False) -> AttemptState:
        if self.store.save(state, discard_submitted=discard_submitted):
            return state
        # a concurrent request submitted this attempt; show what was stored
        return self.store.load()

    def handle_page_actions(
        self,
        reset: bool = False,
        start: bool = False,
        question: Optional[int] = None,
    ) -> AttemptState:
        """Apply query-string actions in page order: reset, start, navigate.

        Time is checked once the actions are applied, so a reset discards an
        expired attempt without scoring it.
        """
        state = self.store.load()

        if reset:
            state = self.machine.reset(state)
        if start:
            state = self.machine.start(state)
        state = self.machine.ensure_composed(state)
        if question is not None:
            state = self.machine.navigate(state, question)

        state = self.machine.tick(state)
        return self._save(state, discard_submitted=reset)

    def handle_form_actions(self, action: ExamActionRequest) -> AttemptState:
        """Apply posted actions in form order: submit, save answer, flag."""
        state = self.machine.ensure_composed(self.store.load())
        state = self.machine.tick(state)

        if action.submit_exam:
            state = self.machine.submit(state)
        if action.save_answer and action.question_id is not None and action.answer is not None:
            state = self.machine.answer(state, action.question_id, action.answer)
        if action.flag_question and action.question_id is not None:
            state = self.machine.flag(state, action.question_id)

        return self._save(state)

    def save_time(self, seconds: int) -> AttemptState:
        state = self.machine.sync_time(self.store.load(), seconds)
        return self._save(state)

    def start_screen(self) -> StartScreenView:
        total = self.settings.total_exam_questions
        quota = self.settings.performance_quota
        return StartScreenView(
            exam_type=self.context.exam_type,
            duration_seconds=self.settings.exam_duration_seconds,
            total_questions=total,
            performance_questions=quota,
            multiple_choice_questions=max(0, total - quota),
            max_score=self.settings.max_score,
            passing_score=self.settings.passing_score,
            domains=self.pool_loader.list_domains(self.context.exam_type),
        )

    def progress(self, state: AttemptState) -> Optional[ExamProgressView]:
        question = self.machine.current_question(state)
        if question is None:
            return None
        remaining = self.machine.remaining(state)
        return ExamProgressView(
            current_question=PublicQuestion(
                id=question.id,
                domain=question.domain,
                text=question.text,
                type=question.type,
                options=question.options,
                points=question.points,
                instructions=question.instructions,
            ),
            question_count=len(state.shuffled_questions),
            answers=state.answers,
            flagged=sorted(state.flagged),
            progress_percentage=self.machine.progress_percentage(state),
            time_remaining=remaining,
            time_remaining_display=format_seconds(remaining),
        )

    def build_view(self, state: AttemptState, candidate: Optional[UserProfile] = None) -> ExamView:
        view = ExamView(
            phase=state.phase,
            exam_type=self.context.exam_type,
            class_id=self.context.class_id,
            candidate=candidate,
        )
        if state.phase == ExamPhase.COMPLETED:
            view.results = self.scoring.summarize(state)
        elif state.phase == ExamPhase.IN_PROGRESS:
            view.progress = self.progress(state)
        else:
            view.start_screen = self.start_screen()
        return view
