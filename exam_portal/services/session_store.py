# exam_portal/services/session_store.py
import logging

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.exam_models import DBExamSessionState
from ..schemas.exam_schemas import AttemptState

logger = logging.getLogger(__name__)


class ExamSessionStore:
    """Server-side storage for one browser session's attempt state.

    The state is loaded once when a request enters and saved once when it
    leaves; nothing in between touches the table except the submission
    latch.
    """

    def __init__(self, db: Session, session_key: str, user_id: int, exam_type: str, duration: int):
        self.db = db
        self.session_key = session_key
        self.user_id = user_id
        self.exam_type = exam_type
        self.duration = duration

    def _get_row(self):
        return (
            self.db.query(DBExamSessionState)
            .filter(DBExamSessionState.session_key == self.session_key)
            .first()
        )

    def load(self) -> AttemptState:
        row = self._get_row()
        if row is not None and row.user_id == self.user_id and row.exam_type == self.exam_type:
            try:
                return AttemptState.model_validate(row.payload)
            except ValidationError as e:
                logger.warning(f"Discarding unreadable exam session {self.session_key}: {str(e)}")

        state = AttemptState.fresh(self.duration)
        self.save(state, discard_submitted=True)
        return state

    def save(self, state: AttemptState, discard_submitted: bool = False) -> bool:
        """Write the state back; False when the write was refused.

        A stored submitted attempt is only replaced by another submitted
        state, or by any state when ``discard_submitted`` is set (reset).
        The check runs inside the UPDATE so a request that loaded the
        attempt before a concurrent submit cannot reopen it.
        """
        values = {
            DBExamSessionState.user_id: self.user_id,
            DBExamSessionState.exam_type: self.exam_type,
            DBExamSessionState.submitted: state.submitted,
            DBExamSessionState.payload: state.model_dump(mode="json"),
        }
        try:
            if self._get_row() is None:
                self.db.add(DBExamSessionState(
                    session_key=self.session_key,
                    user_id=self.user_id,
                    exam_type=self.exam_type,
                    submitted=state.submitted,
                    payload=values[DBExamSessionState.payload],
                ))
                updated = 1
            else:
                query = self.db.query(DBExamSessionState).filter(
                    DBExamSessionState.session_key == self.session_key
                )
                if not state.submitted and not discard_submitted:
                    query = query.filter(DBExamSessionState.submitted.is_(False))
                updated = query.update(values, synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error saving exam session {self.session_key}: {str(e)}")
            self.db.rollback()
            raise

        if not updated:
            logger.info(f"Exam session {self.session_key} was submitted elsewhere; stale state not saved")
            return False
        return True

    def claim_submission(self) -> bool:
        """Atomically flip the stored submitted flag; False when another request already did."""
        try:
            updated = (
                self.db.query(DBExamSessionState)
                .filter(
                    DBExamSessionState.session_key == self.session_key,
                    DBExamSessionState.submitted.is_(False),
                )
                .update({DBExamSessionState.submitted: True}, synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Submission latch unavailable for {self.session_key}: {str(e)}")
            self.db.rollback()
            return True
        return updated == 1
