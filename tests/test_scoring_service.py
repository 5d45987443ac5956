from sqlalchemy.exc import OperationalError

from exam_portal.models.exam_models import DBMockExamAnswer, DBMockExamResult
from exam_portal.schemas.exam_schemas import AttemptState, QuestionType
from exam_portal.services.scoring_service import ScoringService, calculate_score, format_seconds
from factories import make_exam, make_question


def _attempt(exam, answers, flagged=(), time_remaining=1200, score=0):
    return AttemptState(
        started=True,
        start_time=0,
        time_remaining=time_remaining,
        answers=dict(answers),
        flagged=set(flagged),
        completed=True,
        submitted=True,
        score=score,
        shuffled_questions=exam.questions,
        original_ids=exam.original_ids(),
    )


def test_weighted_score_rounds_to_nearest():
    exam = make_exam(make_question(101, points=10), make_question(202, points=20, correct="B"))

    assert calculate_score(exam, {2: "B"}) == 667
    assert calculate_score(exam, {1: "A", 2: "B"}) == 1000
    assert calculate_score(exam, {}) == 0


def test_letter_match_is_case_sensitive():
    exam = make_exam(make_question(1, correct="C"))

    assert calculate_score(exam, {1: "c"}) == 0
    assert calculate_score(exam, {1: "C"}) == 1000


def test_zero_point_exam_scores_zero():
    exam = make_exam(make_question(1, points=0), make_question(2, points=0))

    assert calculate_score(exam, {1: "A", 2: "A"}) == 0


def test_half_points_round_up():
    # 1 of 16 equal questions is exactly 62.5
    exam = make_exam(*[make_question(i) for i in range(1, 17)])

    assert calculate_score(exam, {1: "A"}) == 63


def test_persist_result_writes_summary_and_details(db_session, context, settings):
    exam = make_exam(
        make_question(501, points=10),
        make_question(502, qtype=QuestionType.PERFORMANCE, points=20, correct="A"),
    )
    attempt = _attempt(exam, {1: "A", 2: "B"}, flagged={2}, time_remaining=1200, score=333)
    service = ScoringService(db_session, context, settings)

    result_id = service.persist_result(attempt, exam, 333)

    result = db_session.query(DBMockExamResult).filter_by(id=result_id).one()
    assert result.total_questions == 2
    assert result.questions_answered == 2
    assert result.flagged_questions == 1
    assert result.passed is False
    assert result.time_spent_seconds == settings.exam_duration_seconds - 1200
    assert result.exam_type == "MO-300"
    assert result.class_id == context.class_id

    details = {a.question_id: a for a in db_session.query(DBMockExamAnswer).all()}
    assert set(details) == {501, 502}
    assert details[501].is_correct is True
    assert details[501].points_awarded == 10
    assert details[501].correct_answer == "first"
    assert details[502].is_correct is False
    assert details[502].points_awarded == 0
    assert details[502].question_type == "performance"
    assert details[502].question_options["B"] == "second"


def test_answers_for_unknown_questions_are_skipped(db_session, context, settings):
    exam = make_exam(make_question(1))
    attempt = _attempt(exam, {1: "A", 99: "B"})

    result_id = ScoringService(db_session, context, settings).persist_result(attempt, exam, 1000)

    assert result_id is not None
    assert db_session.query(DBMockExamAnswer).count() == 1


def test_result_write_failure_returns_none(db_session, context, settings, monkeypatch):
    exam = make_exam(make_question(1))
    attempt = _attempt(exam, {1: "A"})

    def broken_commit():
        raise OperationalError("INSERT", {}, Exception("database is down"))

    monkeypatch.setattr(db_session, "commit", broken_commit)

    assert ScoringService(db_session, context, settings).persist_result(attempt, exam, 1000) is None


def test_summary_breakdown_and_review(db_session, context, settings):
    exam = make_exam(
        make_question(1, domain="Tables and Charts"),
        make_question(2, domain="Tables and Charts", correct="B"),
        make_question(3, domain="Multiple Presentations"),
    )
    attempt = _attempt(exam, {1: "A", 2: "C"}, flagged={3}, time_remaining=2875, score=333)

    view = ScoringService(db_session, context, settings).summarize(attempt)

    assert view.summary.correct == 1
    assert view.summary.answered == 2
    assert view.summary.percentage == 33
    assert view.summary.passed is False
    assert view.summary.time_spent_display == "02:05"
    assert [(d.domain, d.correct, d.total, d.percentage) for d in view.domain_breakdown] == [
        ("Tables and Charts", 1, 2, 50),
        ("Multiple Presentations", 0, 1, 0),
    ]
    assert [r.status for r in view.review] == ["correct", "incorrect", "unanswered"]
    assert view.review[1].user_answer_text == "third"
    assert view.review[1].correct_answer_text == "second"
    assert any("Tables and Charts" in item for item in view.recommendations)


def test_format_seconds():
    assert format_seconds(3000) == "50:00"
    assert format_seconds(61) == "01:01"
    assert format_seconds(-5) == "00:00"


def test_unused_time_shows_zero_elapsed(db_session, context, settings):
    exam = make_exam(make_question(1))
    attempt = _attempt(exam, {}, time_remaining=settings.exam_duration_seconds, score=0)

    view = ScoringService(db_session, context, settings).summarize(attempt)

    assert view.summary.time_spent_seconds == 0
    assert view.summary.time_spent_display == format_seconds(0) == "00:00"
