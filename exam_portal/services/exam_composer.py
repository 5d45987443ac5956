# exam_portal/services/exam_composer.py
import logging
import random
from typing import Dict, List, Optional, Sequence

from ..schemas.exam_schemas import ComposedExam, Question
from .static_questions import static_exam

logger = logging.getLogger(__name__)


class ExamComposer:
    """Builds a randomized exam from a question pool.

    Performance questions are guaranteed up to ``performance_quota``; the
    remaining slots up to ``total_target`` are filled from every other
    question type. The merged selection is shuffled again so performance
    tasks are interleaved with multiple-choice items, then renumbered 1..N.
    """

    def __init__(
        self,
        total_target: int = 50,
        performance_quota: int = 15,
        minimum_viable: int = 5,
        rng: Optional[random.Random] = None,
    ):
        self.total_target = total_target
        self.performance_quota = performance_quota
        self.minimum_viable = minimum_viable
        self.rng = rng or random.SystemRandom()

    def partition(self, pool: Sequence[Question]):
        performance = [q for q in pool if q.is_performance]
        other = [q for q in pool if not q.is_performance]
        return performance, other

    def select(self, pool: Sequence[Question]) -> List[Question]:
        performance, other = self.partition(pool)
        self.rng.shuffle(performance)
        self.rng.shuffle(other)

        performance_count = min(self.performance_quota, len(performance))
        remaining = max(0, self.total_target - performance_count)
        other_count = min(remaining, len(other))

        selected = performance[:performance_count] + other[:other_count]
        self.rng.shuffle(selected)
        return selected

    def compose(self, pool: Sequence[Question]) -> ComposedExam:
        selected = self.select(pool)

        questions: Dict[int, Question] = {}
        for sequence, question in enumerate(selected, start=1):
            questions[sequence] = question.model_copy(update={"id": sequence})

        if len(questions) < self.minimum_viable:
            logger.warning(
                f"Composed exam has {len(questions)} questions "
                f"(minimum {self.minimum_viable}); using static question set"
            )
            return static_exam()

        exam = ComposedExam(questions=questions)
        logger.info(
            f"Composed exam with {exam.count} questions "
            f"({exam.performance_count} performance)"
        )
        return exam
