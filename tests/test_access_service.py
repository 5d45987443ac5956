import pytest

from exam_portal.models.exam_models import DBEnrollment
from exam_portal.services.access_service import AccessService, parse_class_id
from factories import CLASS_ID, INSTRUCTOR_ID, OUTSIDER_ID, STUDENT_ID, seed_course_access


@pytest.fixture
def access(db_session, settings):
    seed_course_access(db_session)
    return AccessService(db_session, settings)


@pytest.mark.parametrize("user_id, role, class_id, expected", [
    (STUDENT_ID, "student", None, True),
    (STUDENT_ID, "student", CLASS_ID, True),
    (STUDENT_ID, "student", 20, False),
    (INSTRUCTOR_ID, "instructor", None, True),
    (INSTRUCTOR_ID, "instructor", CLASS_ID, True),
    (INSTRUCTOR_ID, "instructor", 20, False),
    (OUTSIDER_ID, "student", None, False),
    (STUDENT_ID, "admin", None, False),
])
def test_course_access(access, user_id, role, class_id, expected):
    assert access.has_access(user_id, role, class_id) is expected


def test_dropped_enrollment_has_no_access(access, db_session):
    enrollment = db_session.query(DBEnrollment).filter_by(student_id=STUDENT_ID).one()
    enrollment.status = "dropped"
    db_session.commit()

    assert access.has_access(STUDENT_ID, "student", None) is False


@pytest.mark.parametrize("raw, expected", [
    ("10", 10),
    (" 7 ", 7),
    (3, 3),
    ("0", None),
    ("-4", None),
    ("abc", None),
    ("", None),
    (None, None),
])
def test_parse_class_id(raw, expected):
    assert parse_class_id(raw) == expected


def test_profile_prefers_users_table(access):
    profile = access.load_user_profile(STUDENT_ID, {"first_name": "Session"})

    assert profile.first_name == "Ada"
    assert profile.email == "ada@example.com"


def test_profile_falls_back_to_session_values(access):
    profile = access.load_user_profile(404, {"first_name": "Kemi", "user_email": "kemi@example.com"})

    assert profile.first_name == "Kemi"
    assert profile.email == "kemi@example.com"


def test_instructor_of_class(access):
    instructor = access.load_instructor(CLASS_ID)

    assert instructor.name == "Grace Bello"
    assert instructor.email == "tutor@example.com"


def test_instructor_fallback_without_class(access, settings):
    instructor = access.load_instructor(None)

    assert instructor.name == "Your Instructor"
    assert instructor.email == settings.default_instructor_email
