# exam_portal/routers/mock_exam_router.py
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config.settings import ExamSettings, get_settings
from ..database.database import get_db
from ..schemas.exam_schemas import ExamActionRequest, ExamContext, ExamView
from ..services.access_service import AccessService
from ..services.mock_exam_service import MockExamService
from ..services.question_pool import QuestionPoolLoader
from .dependencies import (
    SessionUser,
    get_exam_session_key,
    get_session_user,
    require_course_access,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/mock-exam", tags=["mock-exam"])


def _parse_int(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _storage_error(e: SQLAlchemyError) -> HTTPException:
    logger.error(f"Database error in mock exam: {str(e)}")
    return HTTPException(status_code=503, detail="Database connection failed.")


@router.get("", response_model=ExamView)
def get_mock_exam(
    reset: Optional[str] = None,
    start: Optional[str] = None,
    question: Optional[str] = None,
    user: SessionUser = Depends(get_session_user),
    context: ExamContext = Depends(require_course_access),
    session_key: str = Depends(get_exam_session_key),
    db: Session = Depends(get_db),
    settings: ExamSettings = Depends(get_settings),
) -> ExamView:
    """Show the exam in its current phase after applying reset/start/navigate."""
    try:
        service = MockExamService(db, context, session_key, settings)
        state = service.handle_page_actions(
            reset=reset == "true",
            start=start == "true",
            question=_parse_int(question),
        )
        candidate = AccessService(db, settings).load_user_profile(context.user_id, user.extra)
        return service.build_view(state, candidate)
    except SQLAlchemyError as e:
        raise _storage_error(e)


@router.post("", response_model=ExamView)
def post_mock_exam_action(
    action: ExamActionRequest,
    user: SessionUser = Depends(get_session_user),
    context: ExamContext = Depends(require_course_access),
    session_key: str = Depends(get_exam_session_key),
    db: Session = Depends(get_db),
    settings: ExamSettings = Depends(get_settings),
) -> ExamView:
    """Submit the exam, save an answer or toggle a flag."""
    try:
        logger.info(f"Mock exam action from user {context.user_id}: {action.model_dump(exclude_none=True)}")
        service = MockExamService(db, context, session_key, settings)
        state = service.handle_form_actions(action)
        candidate = AccessService(db, settings).load_user_profile(context.user_id, user.extra)
        return service.build_view(state, candidate)
    except SQLAlchemyError as e:
        raise _storage_error(e)


@router.get("/save-time")
def save_time(
    time: int,
    context: ExamContext = Depends(require_course_access),
    session_key: str = Depends(get_exam_session_key),
    db: Session = Depends(get_db),
    settings: ExamSettings = Depends(get_settings),
) -> Dict[str, str]:
    try:
        MockExamService(db, context, session_key, settings).save_time(time)
    except SQLAlchemyError as e:
        raise _storage_error(e)
    return {"status": "ok"}


@router.get("/domains")
def get_domains(
    context: ExamContext = Depends(require_course_access),
    db: Session = Depends(get_db),
) -> List[str]:
    return QuestionPoolLoader(db).list_domains(context.exam_type)
