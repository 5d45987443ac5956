# exam_portal/routers/dependencies.py
import logging
from typing import Any, Dict, Optional
from uuid import uuid4

from fastapi import Depends, HTTPException, Request, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..config.settings import ExamSettings, get_settings
from ..database.database import get_db
from ..schemas.exam_schemas import ExamContext
from ..services.access_service import ALLOWED_ROLES, AccessService, parse_class_id

logger = logging.getLogger(__name__)

EXAM_SESSION_KEY = "exam_session_key"


class SessionUser(BaseModel):
    user_id: int
    user_role: str
    extra: Dict[str, Any] = Field(default_factory=dict)


def _redirect(location: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_303_SEE_OTHER, headers={"Location": location})


def get_session_user(
    request: Request,
    settings: ExamSettings = Depends(get_settings),
) -> SessionUser:
    """Identity set by the login module; anything missing sends the user back to login."""
    session = request.session
    user_id = session.get("user_id")
    role = session.get("user_role")
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        user_id = None

    if not user_id or role not in ALLOWED_ROLES:
        raise _redirect(settings.login_url)

    extra = {
        key: session[key]
        for key in ("user_email", "first_name", "last_name", "instructor_name", "instructor_email")
        if key in session
    }
    return SessionUser(user_id=user_id, user_role=role, extra=extra)


def get_exam_context(
    request: Request,
    user: SessionUser = Depends(get_session_user),
    settings: ExamSettings = Depends(get_settings),
) -> ExamContext:
    client_host = request.client.host if request.client else None
    return ExamContext(
        user_id=user.user_id,
        user_role=user.user_role,
        class_id=parse_class_id(request.query_params.get("class_id")),
        exam_type=settings.exam_type,
        ip_address=client_host or "unknown",
        user_agent=request.headers.get("user-agent", "unknown"),
    )


def require_course_access(
    context: ExamContext = Depends(get_exam_context),
    db: Session = Depends(get_db),
    settings: ExamSettings = Depends(get_settings),
) -> ExamContext:
    access = AccessService(db, settings)
    if access.has_access(context.user_id, context.user_role, context.class_id):
        return context

    logger.info(f"Access denied for user {context.user_id} (class {context.class_id})")
    if context.class_id is not None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this class's course materials.",
        )
    raise _redirect(f"{settings.base_url.rstrip('/')}/modules/{context.user_role}/dashboard")


def get_exam_session_key(request: Request) -> str:
    key: Optional[str] = request.session.get(EXAM_SESSION_KEY)
    if not key:
        key = uuid4().hex
        request.session[EXAM_SESSION_KEY] = key
    return key
