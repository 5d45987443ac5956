import os
import random
import tempfile
from pathlib import Path

import pytest

# The app module builds its engine on import; keep that bootstrap database out of the repo.
os.environ.setdefault(
    "DATABASE_URL", f"sqlite:///{Path(tempfile.gettempdir()) / 'mock_exam_bootstrap.db'}"
)

from sqlalchemy.orm import sessionmaker

from exam_portal.config.settings import ExamSettings
from exam_portal.database.database import build_engine, init_db
from exam_portal.schemas.exam_schemas import ExamContext
from exam_portal.services import question_pool
from factories import CLASS_ID, STUDENT_ID, FakeClock


@pytest.fixture(autouse=True)
def clear_question_cache():
    question_pool.invalidate()
    yield
    question_pool.invalidate()


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def settings() -> ExamSettings:
    return ExamSettings()


@pytest.fixture
def context() -> ExamContext:
    return ExamContext(
        user_id=STUDENT_ID,
        user_role="student",
        class_id=CLASS_ID,
        exam_type="MO-300",
        ip_address="127.0.0.1",
        user_agent="pytest",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)
