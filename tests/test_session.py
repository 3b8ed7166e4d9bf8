import pytest

from hablar.errors import EmptyAnswerSetError, InvalidInputError, NoAnswerSubmittedError
from hablar.session import (
    COMPLETE,
    COMPLETED,
    CONTINUE,
    IN_PROGRESS,
    LessonQuestion,
    LessonSession,
)

QUESTIONS = [
    LessonQuestion("Translate: hello", ("hola",)),
    LessonQuestion("Translate: easy", ("fácil",)),
    LessonQuestion("Translate: goodbye", ("Adiós", "hasta luego")),
]


def _answer(session: LessonSession, text: str) -> bool:
    session.submit_answer(session.position, text)
    return session.check_answer(session.position)


def test_full_session_all_correct():
    session = LessonSession(QUESTIONS)
    assert session.state == IN_PROGRESS
    assert session.position == 0

    assert _answer(session, "Hola") is True
    assert session.advance() == CONTINUE
    assert session.position == 1
    assert _answer(session, "facil") is True
    assert session.advance() == CONTINUE
    assert session.position == 2
    assert _answer(session, "adios") is True
    assert session.score() == 3
    assert session.advance() == COMPLETE

    assert session.state == COMPLETED
    assert session.completed is True
    assert session.position == len(QUESTIONS)
    assert session.current_question is None
    assert session.score_percent() == 100


def test_restart_after_completion():
    session = LessonSession(QUESTIONS)
    for text in ("hola", "facil", "adios"):
        _answer(session, text)
        session.advance()
    assert session.completed

    session.restart()
    assert session.state == IN_PROGRESS
    assert session.position == 0
    assert session.score() == 0
    assert session.results() == []
    assert session.answer(0) is None
    assert session.questions == tuple(QUESTIONS)


def test_check_before_submit_is_refused():
    session = LessonSession(QUESTIONS)
    with pytest.raises(NoAnswerSubmittedError):
        session.check_answer(1)


def test_advance_before_check_is_refused():
    session = LessonSession(QUESTIONS)
    with pytest.raises(NoAnswerSubmittedError):
        session.advance()
    session.submit_answer(0, "hola")
    with pytest.raises(NoAnswerSubmittedError):
        session.advance()
    session.check_answer(0)
    assert session.advance() == CONTINUE


def test_completed_session_only_restarts():
    session = LessonSession(QUESTIONS[:1])
    _answer(session, "hola")
    assert session.advance() == COMPLETE
    with pytest.raises(NoAnswerSubmittedError):
        session.advance()
    with pytest.raises(NoAnswerSubmittedError):
        session.submit_answer(0, "hola")


def test_check_is_idempotent():
    session = LessonSession(QUESTIONS)
    session.submit_answer(0, "adiós")
    assert session.check_answer(0) is False
    assert session.check_answer(0) is False
    assert session.verdict(0) is False
    assert session.score() == 0


def test_resubmitting_different_answer_drops_verdict():
    session = LessonSession(QUESTIONS)
    session.submit_answer(0, "hla")
    assert session.check_answer(0) is False
    session.submit_answer(0, "hla")
    assert session.verdict(0) is False
    session.submit_answer(0, "hola")
    assert session.verdict(0) is None
    assert not session.is_checked(0)
    assert session.check_answer(0) is True
    assert session.score() == 1


def test_score_counts_only_checked_answers():
    session = LessonSession(QUESTIONS)
    session.submit_answer(0, "hola")
    session.submit_answer(1, "facil")
    assert session.score() == 0
    session.check_answer(1)
    assert session.score() == 1


def test_results_are_ordered_by_question():
    session = LessonSession(QUESTIONS)
    session.submit_answer(2, "hasta luego")
    session.check_answer(2)
    session.submit_answer(0, "adios")
    session.check_answer(0)
    results = session.results()
    assert [r.question for r in results] == ["Translate: hello", "Translate: goodbye"]
    assert [r.correct for r in results] == [False, True]
    assert results[1].answers == ("Adiós", "hasta luego")
    assert results[1].user_answer == "hasta luego"


def test_grade_is_kept_for_feedback():
    session = LessonSession(QUESTIONS)
    _answer(session, "hola")
    session.advance()
    _answer(session, "facil")
    grade = session.grade(1)
    assert grade.accent_hint is True
    assert grade.matched == "fácil"


def test_progress_percent():
    session = LessonSession(QUESTIONS)
    assert session.progress_percent() == 33
    _answer(session, "hola")
    session.advance()
    assert session.progress_percent() == 67


def test_invalid_arguments():
    with pytest.raises(ValueError):
        LessonSession([])
    session = LessonSession(QUESTIONS)
    with pytest.raises(IndexError):
        session.submit_answer(3, "hola")
    with pytest.raises(IndexError):
        session.check_answer(-1)
    with pytest.raises(InvalidInputError):
        session.submit_answer(0, None)


def test_question_without_answers_fails_at_check_time():
    session = LessonSession([LessonQuestion("Broken", ())])
    session.submit_answer(0, "algo")
    with pytest.raises(EmptyAnswerSetError):
        session.check_answer(0)
    assert session.verdict(0) is None
    with pytest.raises(NoAnswerSubmittedError):
        session.advance()
