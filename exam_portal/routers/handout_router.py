# exam_portal/routers/handout_router.py
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..config.settings import ExamSettings, get_settings
from ..database.database import get_db
from ..schemas.exam_schemas import ExamContext
from ..schemas.handout_schemas import HandoutContext
from ..services.access_service import AccessService
from .dependencies import SessionUser, get_session_user, require_course_access

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/course-materials/powerpoint", tags=["handouts"])

COURSE_WEEKS = 8


@router.get("/week/{week}", response_model=HandoutContext)
def get_handout_context(
    week: int,
    user: SessionUser = Depends(get_session_user),
    context: ExamContext = Depends(require_course_access),
    db: Session = Depends(get_db),
    settings: ExamSettings = Depends(get_settings),
) -> HandoutContext:
    """Viewer data for a weekly handout; the handout body itself is static."""
    if not 1 <= week <= COURSE_WEEKS:
        raise HTTPException(status_code=404, detail="Handout not found")

    access = AccessService(db, settings)
    return HandoutContext(
        course="Microsoft PowerPoint (Office 2019)",
        week=week,
        title=f"PowerPoint Week {week} Handout",
        class_id=context.class_id,
        user_role=context.user_role,
        user=access.load_user_profile(context.user_id, user.extra),
        instructor=access.load_instructor(context.class_id, user.extra),
    )
