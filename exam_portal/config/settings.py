# exam_portal/config/settings.py
import os
from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


class ExamSettings(BaseModel):
    database_url: str = "sqlite:///./mock_exam.db"
    session_secret_key: str = "change-me"
    cors_origins: List[str] = ["http://localhost:3000"]
    base_url: str = "/"
    login_url: str = "/login"

    exam_type: str = "MO-300"
    course_title_pattern: str = "%Microsoft PowerPoint (Office 2019)%"
    exam_duration_seconds: int = 3000  # 50 minutes
    total_exam_questions: int = 50
    performance_quota: int = 15
    minimum_viable_questions: int = 5
    max_score: int = 1000
    passing_score: int = 700

    question_cache_ttl_seconds: int = 300
    default_instructor_email: str = "instructor@impactdigitalacademy.com"


def load_settings() -> ExamSettings:
    """Build settings from the environment (.env is loaded on import)."""
    origins = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    return ExamSettings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./mock_exam.db"),
        session_secret_key=os.getenv("SESSION_SECRET_KEY", "change-me"),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        base_url=os.getenv("BASE_URL", "/"),
        login_url=os.getenv("LOGIN_URL", "/login"),
        exam_type=os.getenv("EXAM_TYPE", "MO-300"),
        course_title_pattern=os.getenv(
            "COURSE_TITLE_PATTERN", "%Microsoft PowerPoint (Office 2019)%"
        ),
        exam_duration_seconds=int(os.getenv("EXAM_DURATION_SECONDS", "3000")),
        total_exam_questions=int(os.getenv("EXAM_TOTAL_QUESTIONS", "50")),
        performance_quota=int(os.getenv("EXAM_PERFORMANCE_QUOTA", "15")),
        minimum_viable_questions=int(os.getenv("EXAM_MINIMUM_VIABLE", "5")),
        max_score=int(os.getenv("EXAM_MAX_SCORE", "1000")),
        passing_score=int(os.getenv("EXAM_PASSING_SCORE", "700")),
        question_cache_ttl_seconds=int(os.getenv("QUESTION_CACHE_TTL_SECONDS", "300")),
        default_instructor_email=os.getenv(
            "DEFAULT_INSTRUCTOR_EMAIL", "instructor@impactdigitalacademy.com"
        ),
    )


@lru_cache(maxsize=1)
def get_settings() -> ExamSettings:
    return load_settings()
