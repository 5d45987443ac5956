# exam_portal/services/access_service.py
import logging
from typing import Any, Mapping, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config.settings import ExamSettings
from ..models.exam_models import DBClassBatch, DBCourse, DBEnrollment, DBUser
from ..schemas.exam_schemas import InstructorInfo, UserProfile

logger = logging.getLogger(__name__)

ALLOWED_ROLES = ("student", "instructor")
ACTIVE_ENROLLMENT_STATUSES = ("active", "completed")


def parse_class_id(raw: Any) -> Optional[int]:
    """Accept only positive integers; anything else means 'no class'."""
    if raw is None:
        return None
    try:
        class_id = int(str(raw).strip())
    except ValueError:
        return None
    return class_id if class_id > 0 else None


class AccessService:
    def __init__(self, db: Session, settings: ExamSettings):
        self.db = db
        self.settings = settings

    def _count_student_enrollments(self, user_id: int, class_id: Optional[int]) -> int:
        query = (
            self.db.query(func.count(DBEnrollment.id))
            .join(DBClassBatch, DBEnrollment.class_id == DBClassBatch.id)
            .join(DBCourse, DBClassBatch.course_id == DBCourse.id)
            .filter(
                DBEnrollment.student_id == user_id,
                DBEnrollment.status.in_(ACTIVE_ENROLLMENT_STATUSES),
                DBCourse.title.like(self.settings.course_title_pattern),
            )
        )
        if class_id is not None:
            query = query.filter(DBEnrollment.class_id == class_id)
        return query.scalar() or 0

    def _count_instructor_classes(self, user_id: int, class_id: Optional[int]) -> int:
        query = (
            self.db.query(func.count(DBClassBatch.id))
            .join(DBCourse, DBClassBatch.course_id == DBCourse.id)
            .filter(
                DBClassBatch.instructor_id == user_id,
                DBCourse.title.like(self.settings.course_title_pattern),
            )
        )
        if class_id is not None:
            query = query.filter(DBClassBatch.id == class_id)
        return query.scalar() or 0

    def has_access(self, user_id: int, role: str, class_id: Optional[int]) -> bool:
        if role not in ALLOWED_ROLES:
            return False
        try:
            if role == "student":
                count = self._count_student_enrollments(user_id, class_id)
            else:
                count = self._count_instructor_classes(user_id, class_id)
        except SQLAlchemyError as e:
            logger.error(f"Access check failed for user {user_id}: {str(e)}")
            self.db.rollback()
            return False
        return count > 0

    def load_user_profile(self, user_id: int, fallback: Optional[Mapping[str, Any]] = None) -> UserProfile:
        """Profile from the users table, falling back to values carried in the session."""
        fallback = fallback or {}
        try:
            user = self.db.query(DBUser).filter(DBUser.id == user_id).first()
        except SQLAlchemyError as e:
            logger.error(f"Error loading user {user_id}: {str(e)}")
            self.db.rollback()
            user = None

        if user is None:
            return UserProfile(
                user_id=user_id,
                email=fallback.get("user_email", ""),
                first_name=fallback.get("first_name", ""),
                last_name=fallback.get("last_name", ""),
            )
        return UserProfile(
            user_id=user.id,
            email=user.email,
            first_name=user.first_name or "",
            last_name=user.last_name or "",
        )

    def load_instructor(self, class_id: Optional[int], fallback: Optional[Mapping[str, Any]] = None) -> InstructorInfo:
        fallback = fallback or {}
        if class_id is not None:
            try:
                instructor = (
                    self.db.query(DBUser)
                    .join(DBClassBatch, DBClassBatch.instructor_id == DBUser.id)
                    .filter(DBClassBatch.id == class_id)
                    .first()
                )
            except SQLAlchemyError as e:
                logger.error(f"Error loading instructor for class {class_id}: {str(e)}")
                self.db.rollback()
                instructor = None
            if instructor is not None:
                return InstructorInfo(
                    name=f"{instructor.first_name} {instructor.last_name}".strip(),
                    email=instructor.email,
                )

        return InstructorInfo(
            name=fallback.get("instructor_name", "Your Instructor"),
            email=fallback.get("instructor_email", self.settings.default_instructor_email),
        )
