# exam_portal/models/exam_models.py
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class DBUser(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String, nullable=False)
    first_name = Column(String, default="")
    last_name = Column(String, default="")
    role = Column(String, nullable=False, default="student")


class DBCourse(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)


class DBClassBatch(Base):
    __tablename__ = "class_batches"

    id = Column(Integer, primary_key=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False)
    instructor_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    name = Column(String)

    course = relationship("DBCourse")
    instructor = relationship("DBUser")


class DBEnrollment(Base):
    __tablename__ = "enrollments"

    id = Column(Integer, primary_key=True)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    class_id = Column(Integer, ForeignKey("class_batches.id"), nullable=False)
    status = Column(String, nullable=False, default="active")  # active, completed, dropped


class DBMockExamQuestion(Base):
    __tablename__ = "mock_exam_questions"

    id = Column(Integer, primary_key=True)
    exam_type = Column(String, nullable=False, index=True)
    question_number = Column(Integer)
    question_domain = Column(String, nullable=False)
    question_text = Column(Text, nullable=False)
    question_type = Column(String, nullable=False, default="multiple_choice")
    option_a = Column(String)
    option_b = Column(String)
    option_c = Column(String)
    option_d = Column(String)
    option_e = Column(String)
    correct_answer = Column(String, nullable=False)
    points = Column(Float, nullable=False, default=10)
    performance_instructions = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)


class DBMockExamResult(Base):
    __tablename__ = "mock_exam_results"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    class_id = Column(Integer, nullable=True)
    exam_type = Column(String, nullable=False)
    total_questions = Column(Integer, nullable=False)
    questions_answered = Column(Integer, nullable=False)
    flagged_questions = Column(Integer, nullable=False)
    score = Column(Integer, nullable=False)
    passed = Column(Boolean, nullable=False)
    time_spent_seconds = Column(Integer, nullable=False)
    submitted_at = Column(DateTime, default=datetime.utcnow)

    answers = relationship("DBMockExamAnswer", back_populates="result")


class DBMockExamAnswer(Base):
    __tablename__ = "mock_exam_answers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    result_id = Column(Integer, ForeignKey("mock_exam_results.id"), nullable=False)
    question_id = Column(Integer, nullable=False)  # original storage id
    question_text = Column(Text)
    question_options = Column(JSON)  # snapshot of the displayed options
    question_domain = Column(String)
    question_type = Column(String)
    user_answer = Column(String)
    correct_answer = Column(Text)
    is_correct = Column(Boolean, nullable=False)
    points_possible = Column(Float, nullable=False)
    points_awarded = Column(Float, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    result = relationship("DBMockExamResult", back_populates="answers")


class DBExamActivityLog(Base):
    __tablename__ = "exam_activity_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False)
    class_id = Column(Integer, nullable=True)
    exam_type = Column(String, nullable=False)
    action = Column(String, nullable=False)
    data = Column(JSON, nullable=True)
    ip_address = Column(String)
    user_agent = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow)


class DBExamSessionState(Base):
    __tablename__ = "exam_session_state"

    session_key = Column(String, primary_key=True)
    user_id = Column(Integer, nullable=False)
    exam_type = Column(String, nullable=False)
    submitted = Column(Boolean, nullable=False, default=False)  # mirrors payload, used as CAS latch
    payload = Column(JSON, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
