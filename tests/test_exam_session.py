import pytest

from exam_portal.models.exam_models import DBExamActivityLog, DBMockExamAnswer, DBMockExamResult
from exam_portal.schemas.exam_schemas import ExamPhase
from exam_portal.services.activity_log import ActivityLogger
from exam_portal.services.exam_session import ExamSessionMachine
from exam_portal.services.scoring_service import ScoringService
from factories import make_exam, make_question


@pytest.fixture
def exam():
    return make_exam(
        make_question(11, points=10, correct="A"),
        make_question(12, points=20, correct="B"),
        make_question(13, points=10, correct="C"),
    )


@pytest.fixture
def compose_calls():
    return []


@pytest.fixture
def machine(db_session, context, settings, clock, exam, compose_calls):
    def compose():
        compose_calls.append(1)
        return exam

    return ExamSessionMachine(
        settings,
        compose_exam=compose,
        activity=ActivityLogger(db_session, context),
        scoring=ScoringService(db_session, context, settings),
        clock=clock,
    )


def _actions(db_session):
    return [row.action for row in db_session.query(DBExamActivityLog).order_by(DBExamActivityLog.id)]


def test_start_composes_and_resets_progress(machine, db_session, clock):
    state = machine.start(machine.fresh())

    assert state.phase == ExamPhase.IN_PROGRESS
    assert state.start_time == int(clock.now)
    assert state.time_remaining == 3000
    assert state.current_question == 1
    assert state.questions_loaded == 3
    assert state.original_ids == {1: 11, 2: 12, 3: 13}
    assert _actions(db_session) == ["exam_started"]


def test_second_start_is_a_no_op(machine, compose_calls, db_session):
    first = machine.start(machine.fresh())
    second = machine.start(first)

    assert second == first
    assert len(compose_calls) == 1
    assert _actions(db_session) == ["exam_started"]


def test_navigation_ignores_out_of_range_targets(machine):
    state = machine.start(machine.fresh())

    assert machine.navigate(state, 3).current_question == 3
    assert machine.navigate(state, 0).current_question == 1
    assert machine.navigate(state, 4).current_question == 1


def test_actions_before_start_are_ignored(machine):
    state = machine.fresh()

    assert machine.navigate(state, 2) == state
    assert machine.answer(state, 1, "A") == state
    assert machine.flag(state, 1) == state


def test_answer_upserts_and_logs(machine, db_session):
    state = machine.start(machine.fresh())
    state = machine.answer(state, 2, "A")
    state = machine.answer(state, 2, "B")

    assert state.answers == {2: "B"}
    assert _actions(db_session) == ["exam_started", "answer_saved", "answer_saved"]
    last = db_session.query(DBExamActivityLog).order_by(DBExamActivityLog.id.desc()).first()
    assert last.data == {"question_id": 2, "answer": "B"}


def test_answer_for_unknown_question_is_ignored(machine):
    state = machine.start(machine.fresh())

    assert machine.answer(state, 9, "A").answers == {}


def test_flag_then_unflag_restores_state(machine):
    state = machine.start(machine.fresh())

    flagged = machine.flag(state, 2)
    assert flagged.flagged == {2}
    assert machine.flag(flagged, 2).flagged == set()


def test_tick_counts_down_from_wall_clock(machine, clock):
    state = machine.start(machine.fresh())
    clock.advance(125)

    state = machine.tick(state)

    assert state.time_remaining == 2875
    assert state.phase == ExamPhase.IN_PROGRESS


def test_tick_at_zero_auto_submits(machine, clock, db_session):
    state = machine.start(machine.fresh())
    state = machine.answer(state, 1, "A")
    clock.advance(3000)

    state = machine.tick(state)

    assert state.time_remaining == 0
    assert state.completed and state.submitted
    assert state.score == 250
    assert db_session.query(DBMockExamResult).count() == 1
    assert db_session.query(DBMockExamResult).one().time_spent_seconds == 3000


def test_tick_never_goes_negative(machine, clock):
    state = machine.start(machine.fresh())
    clock.advance(10_000)

    state = machine.tick(state)

    assert state.time_remaining == 0
    assert machine.tick(state).time_remaining == 0


def test_submit_scores_and_persists_once(machine, db_session):
    state = machine.start(machine.fresh())
    state = machine.answer(state, 2, "B")

    submitted = machine.submit(state)
    again = machine.submit(submitted)

    assert submitted.score == 500
    assert again == submitted
    assert db_session.query(DBMockExamResult).count() == 1
    assert db_session.query(DBMockExamAnswer).count() == 1
    assert _actions(db_session).count("exam_submitted") == 1
    log = db_session.query(DBExamActivityLog).filter_by(action="exam_submitted").one()
    assert log.data == {"score": 500}


def test_submit_before_start_does_nothing(machine, db_session):
    state = machine.fresh()

    assert machine.submit(state) == state
    assert db_session.query(DBMockExamResult).count() == 0


def test_lost_submission_latch_skips_writes(db_session, context, settings, clock, exam):
    machine = ExamSessionMachine(
        settings,
        compose_exam=lambda: exam,
        activity=ActivityLogger(db_session, context),
        scoring=ScoringService(db_session, context, settings),
        claim_submission=lambda: False,
        clock=clock,
    )
    state = machine.start(machine.fresh())

    state = machine.submit(machine.answer(state, 1, "A"))

    assert state.completed and state.submitted
    assert state.score == 250
    assert db_session.query(DBMockExamResult).count() == 0


def test_reset_discards_attempt(machine, db_session):
    state = machine.start(machine.fresh())
    state = machine.flag(machine.answer(state, 1, "A"), 3)
    state = machine.submit(state)

    state = machine.reset(state)

    assert state.phase == ExamPhase.NOT_STARTED
    assert state.answers == {}
    assert state.flagged == set()
    assert not state.started and not state.submitted
    assert state.time_remaining == 3000
    assert state.shuffled_questions == {}
    assert _actions(db_session)[-1] == "exam_reset"


def test_restart_after_reset_recomposes(machine, compose_calls):
    state = machine.reset(machine.start(machine.fresh()))

    machine.start(state)

    assert len(compose_calls) == 2


def test_resumed_attempt_keeps_its_questions(machine, compose_calls):
    state = machine.start(machine.fresh())

    assert machine.ensure_composed(state) == state
    assert len(compose_calls) == 1

    missing = state.model_copy(update={"shuffled_questions": {}})
    assert len(machine.ensure_composed(missing).shuffled_questions) == 3
    assert len(compose_calls) == 2


def test_sync_time_is_clamped(machine):
    state = machine.start(machine.fresh())

    assert machine.sync_time(state, 1800).time_remaining == 1800
    assert machine.sync_time(state, -20).time_remaining == 0
    assert machine.sync_time(state, 99999).time_remaining == 3000


def test_logging_failure_does_not_block_start(machine, db_session, monkeypatch):
    from sqlalchemy.exc import OperationalError

    def broken_commit():
        raise OperationalError("INSERT", {}, Exception("log table locked"))

    monkeypatch.setattr(db_session, "commit", broken_commit)

    state = machine.start(machine.fresh())

    assert state.phase == ExamPhase.IN_PROGRESS
