# exam_portal/services/activity_log.py
import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.exam_models import DBExamActivityLog
from ..schemas.exam_schemas import ActivityAction, ExamContext

logger = logging.getLogger(__name__)


class ActivityLogger:
    """Append-only audit trail. Write failures never reach the caller."""

    def __init__(self, db: Session, context: ExamContext):
        self.db = db
        self.context = context

    def log(self, action: ActivityAction, data: Optional[Any] = None) -> bool:
        entry = DBExamActivityLog(
            user_id=self.context.user_id,
            class_id=self.context.class_id,
            exam_type=self.context.exam_type,
            action=action.value,
            data=data,
            ip_address=self.context.ip_address,
            user_agent=self.context.user_agent,
        )
        try:
            self.db.add(entry)
            self.db.commit()
            return True
        except SQLAlchemyError as e:
            logger.error(f"Error logging exam activity {action.value}: {str(e)}")
            self.db.rollback()
            return False
