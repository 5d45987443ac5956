# exam_portal/services/question_pool.py
import logging
from typing import List, Optional

from cachetools import TTLCache
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config.settings import get_settings
from ..models.exam_models import DBMockExamQuestion
from ..schemas.exam_schemas import ComposedExam, Question, QuestionType
from .static_questions import DEFAULT_DOMAINS, static_exam

logger = logging.getLogger(__name__)

_OPTION_LETTERS = ("A", "B", "C", "D", "E")

_ttl = get_settings().question_cache_ttl_seconds
_pool_cache: TTLCache = TTLCache(maxsize=32, ttl=_ttl)
_domain_cache: TTLCache = TTLCache(maxsize=32, ttl=_ttl)


def invalidate(exam_type: Optional[str] = None) -> None:
    """Drop cached pool and domain data, for one exam type or all of them."""
    if exam_type is None:
        _pool_cache.clear()
        _domain_cache.clear()
        return
    _pool_cache.pop(exam_type, None)
    _domain_cache.pop(exam_type, None)


class QuestionPoolLoader:
    def __init__(self, db: Session):
        self.db = db

    def _convert_from_db_model(self, row: DBMockExamQuestion) -> Question:
        """Convert a question row to the domain model; storage id doubles as display id until composed."""
        options = {}
        for letter in _OPTION_LETTERS:
            text = getattr(row, f"option_{letter.lower()}") or ""
            if text.strip():
                options[letter] = text

        kind = (row.question_type or "").strip().lower()
        return Question(
            id=row.id,
            original_id=row.id,
            question_number=row.question_number,
            domain=row.question_domain or "",
            text=row.question_text,
            type=QuestionType.PERFORMANCE if kind == QuestionType.PERFORMANCE.value else QuestionType.MULTIPLE_CHOICE,
            options=options,
            correct_answer=(row.correct_answer or "").strip(),
            points=float(row.points or 0),
            instructions=row.performance_instructions or "",
        )

    def load_pool(self, exam_type: str) -> List[Question]:
        """Return every active question for the exam type.

        An unreachable database is reported as an empty pool; the caller
        falls back to the static set.
        """
        cached = _pool_cache.get(exam_type)
        if cached is not None:
            return list(cached)

        try:
            rows = (
                self.db.query(DBMockExamQuestion)
                .filter(
                    DBMockExamQuestion.exam_type == exam_type,
                    DBMockExamQuestion.is_active.is_(True),
                )
                .all()
            )
        except SQLAlchemyError as e:
            logger.warning(f"Question pool for {exam_type} unavailable: {str(e)}")
            self.db.rollback()
            return []

        pool = [self._convert_from_db_model(row) for row in rows]
        if pool:
            _pool_cache[exam_type] = pool
        logger.info(f"Loaded {len(pool)} active questions for {exam_type}")
        return list(pool)

    def load_static_fallback(self) -> ComposedExam:
        return static_exam()

    def list_domains(self, exam_type: str) -> List[str]:
        cached = _domain_cache.get(exam_type)
        if cached is not None:
            return list(cached)

        try:
            rows = (
                self.db.query(DBMockExamQuestion.question_domain)
                .filter(
                    DBMockExamQuestion.exam_type == exam_type,
                    DBMockExamQuestion.is_active.is_(True),
                )
                .distinct()
                .order_by(DBMockExamQuestion.question_domain)
                .all()
            )
        except SQLAlchemyError as e:
            logger.warning(f"Domain list for {exam_type} unavailable: {str(e)}")
            self.db.rollback()
            return list(DEFAULT_DOMAINS)

        domains = [row[0] for row in rows if row[0]]
        if not domains:
            return list(DEFAULT_DOMAINS)
        _domain_cache[exam_type] = domains
        return list(domains)
