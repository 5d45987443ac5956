# exam_portal/services/scoring_service.py
import logging
import math
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config.settings import ExamSettings
from ..models.exam_models import DBMockExamAnswer, DBMockExamResult
from ..schemas.exam_schemas import (
    AttemptState,
    ComposedExam,
    DomainPerformance,
    ExamContext,
    ExamResultSummary,
    ExamResultsView,
    QuestionReview,
)

logger = logging.getLogger(__name__)


def calculate_score(exam: ComposedExam, answers: Dict[int, str], max_score: int = 1000) -> int:
    """Weighted score on a 0..max_score scale, rounded half up."""
    total_points = 0.0
    earned_points = 0.0

    for sequence, question in exam.questions.items():
        total_points += question.points
        answer = answers.get(sequence)
        if answer is not None and answer == question.correct_answer:
            earned_points += question.points

    if total_points <= 0:
        return 0
    return int(math.floor(earned_points / total_points * max_score + 0.5))


def format_seconds(seconds: int) -> str:
    if seconds <= 0:
        return "00:00"
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


class ScoringService:
    def __init__(self, db: Session, context: ExamContext, settings: ExamSettings):
        self.db = db
        self.context = context
        self.settings = settings

    def score(self, exam: ComposedExam, answers: Dict[int, str]) -> int:
        return calculate_score(exam, answers, self.settings.max_score)

    def time_spent(self, attempt: AttemptState) -> int:
        return max(0, self.settings.exam_duration_seconds - attempt.time_remaining)

    def persist_result(self, attempt: AttemptState, exam: ComposedExam, score: int) -> Optional[int]:
        """Write the result summary and one detail row per answer.

        Returns the result id, or None when the summary row could not be
        written. Detail rows are committed one by one so a bad row does not
        discard the ones before it.
        """
        db_result = DBMockExamResult(
            user_id=self.context.user_id,
            class_id=self.context.class_id,
            exam_type=self.context.exam_type,
            total_questions=exam.count,
            questions_answered=len(attempt.answers),
            flagged_questions=len(attempt.flagged),
            score=score,
            passed=score >= self.settings.passing_score,
            time_spent_seconds=self.time_spent(attempt),
        )
        try:
            self.db.add(db_result)
            self.db.commit()
            self.db.refresh(db_result)
        except SQLAlchemyError as e:
            logger.error(f"Error saving mock exam result for user {self.context.user_id}: {str(e)}")
            self.db.rollback()
            return None

        saved = self._persist_answers(db_result.id, attempt, exam)
        logger.info(
            f"Saved mock exam result {db_result.id} (score {score}, {saved} answer rows)"
        )
        return db_result.id

    def _persist_answers(self, result_id: int, attempt: AttemptState, exam: ComposedExam) -> int:
        saved = 0
        for sequence, answer in attempt.answers.items():
            question = exam.get(sequence)
            if question is None:
                logger.warning(f"Skipping answer for unknown question {sequence} in result {result_id}")
                continue

            is_correct = answer == question.correct_answer
            db_answer = DBMockExamAnswer(
                result_id=result_id,
                question_id=attempt.original_ids.get(sequence, question.original_id),
                question_text=question.text,
                question_options=dict(question.options),
                question_domain=question.domain,
                question_type=question.type.value,
                user_answer=answer,
                correct_answer=question.correct_answer_text(),
                is_correct=is_correct,
                points_possible=float(question.points),
                points_awarded=float(question.points) if is_correct else 0.0,
            )
            try:
                self.db.add(db_answer)
                self.db.commit()
                saved += 1
            except SQLAlchemyError as e:
                logger.error(f"Failed to save mock exam answer for question {sequence}: {str(e)}")
                self.db.rollback()
        return saved

    def domain_breakdown(self, exam: ComposedExam, answers: Dict[int, str]) -> List[DomainPerformance]:
        totals: Dict[str, Dict[str, int]] = {}
        for sequence, question in exam.questions.items():
            domain = question.domain or "Unknown"
            if domain not in totals:
                totals[domain] = {"correct": 0, "total": 0}
            totals[domain]["total"] += 1
            if answers.get(sequence) == question.correct_answer:
                totals[domain]["correct"] += 1

        return [
            DomainPerformance(
                domain=domain,
                correct=perf["correct"],
                total=perf["total"],
                percentage=int(math.floor(perf["correct"] / perf["total"] * 100 + 0.5)),
            )
            for domain, perf in totals.items()
            if perf["total"] > 0
        ]

    def question_review(self, exam: ComposedExam, answers: Dict[int, str]) -> List[QuestionReview]:
        review = []
        for sequence, question in exam.questions.items():
            user_answer = answers.get(sequence)
            if not user_answer:
                status = "unanswered"
            elif user_answer == question.correct_answer:
                status = "correct"
            else:
                status = "incorrect"

            review.append(QuestionReview(
                id=sequence,
                domain=question.domain,
                text=question.text,
                status=status,
                user_answer=user_answer,
                user_answer_text=question.options.get(user_answer, "") if user_answer else "",
                correct_answer=question.correct_answer,
                correct_answer_text=question.correct_answer_text(),
            ))
        return review

    def recommendations(self, breakdown: List[DomainPerformance], passed: bool) -> List[str]:
        items = [
            f"Focus on {perf.domain} ({perf.percentage}%, {perf.correct}/{perf.total} correct)"
            for perf in breakdown
            if perf.percentage < 70
        ]
        if passed:
            items.append("You are ready to schedule the certification exam")
        else:
            items.append("Review the course handouts and retake the mock exam")
        return items

    def summarize(self, attempt: AttemptState) -> ExamResultsView:
        exam = attempt.exam
        answers = attempt.answers
        correct = sum(
            1 for seq, ans in answers.items()
            if exam.get(seq) is not None and ans == exam.get(seq).correct_answer
        )
        total = exam.count
        time_spent = self.time_spent(attempt)
        passed = attempt.score >= self.settings.passing_score

        summary = ExamResultSummary(
            score=attempt.score,
            max_score=self.settings.max_score,
            passing_score=self.settings.passing_score,
            passed=passed,
            total_questions=total,
            answered=len(answers),
            correct=correct,
            percentage=int(math.floor(correct / total * 100 + 0.5)) if total > 0 else 0,
            flagged=len(attempt.flagged),
            time_spent_seconds=time_spent,
            time_spent_display=format_seconds(time_spent),
        )
        breakdown = self.domain_breakdown(exam, answers)
        return ExamResultsView(
            summary=summary,
            domain_breakdown=breakdown,
            recommendations=self.recommendations(breakdown, passed),
            review=self.question_review(exam, answers),
        )
