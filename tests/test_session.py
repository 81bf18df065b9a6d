import random

from sheet_quiz.models import (
    MULTIPLE_CHOICE, SINGLE_CHOICE, TRUE_FALSE, ExamConfig, ExamSettings, QuizSettings,
)
from sheet_quiz.session import QuizSession


def test_start_resets_answers(sample_questions):
    session = QuizSession(sample_questions, QuizSettings())
    assert session.start() == sample_questions
    assert session.user_answers == [None] * 4
    assert session.current is sample_questions[0]
    assert not session.is_completed


def test_navigation_is_clamped(sample_questions):
    session = QuizSession(sample_questions, QuizSettings())
    session.start()
    assert session.previous() == 0
    session.go_to(10)
    assert session.current_index == 3
    assert session.is_last
    session.go_to(1)
    assert session.next() == 2


def test_empty_session():
    session = QuizSession([], QuizSettings())
    session.start()
    assert session.current is None
    assert session.go_to(3) == 0
    assert session.submit() == []
    assert session.stats().total == 0


def test_answer_normalization(sample_questions):
    session = QuizSession(sample_questions, QuizSettings())
    session.start()
    session.answer(" a ")
    assert session.user_answers[0] == "A"
    session.answer("c, a", index=1)
    assert session.user_answers[1] == "AC"
    session.answer("对", index=2)
    assert session.user_answers[2] == "A"
    session.answer("b", index=2)
    assert session.user_answers[2] == "B"
    session.answer("   ", index=3)
    assert session.user_answers[3] is None


def test_toggle_option(sample_questions):
    session = QuizSession(sample_questions, QuizSettings())
    session.start()
    session.go_to(1)
    session.toggle_option("c")
    assert session.toggle_option("a") == "AC"
    assert session.toggle_option("C") == "A"
    assert session.toggle_option("A") is None


def test_recite_mode_is_read_only(sample_questions):
    session = QuizSession(sample_questions, QuizSettings(mode="recite"))
    session.start()
    session.answer("A")
    assert session.user_answers[0] is None
    feedback = session.feedback()
    assert feedback.correct_answer_text == "A. Paris"


def test_review_mode_feedback_after_answering(sample_questions):
    session = QuizSession(sample_questions, QuizSettings(mode="review"))
    session.start()
    assert session.feedback() is None
    session.answer("B")
    feedback = session.feedback()
    assert not feedback.is_correct
    assert feedback.correct_answer_text == "A. Paris"


def test_quiz_mode_has_no_live_feedback(sample_questions):
    session = QuizSession(sample_questions, QuizSettings())
    session.start()
    session.answer("A")
    assert session.feedback() is None


def test_submit_and_stats(sample_questions):
    session = QuizSession(sample_questions, QuizSettings())
    session.start()
    session.answer("A", index=0)
    session.answer("AC", index=1)
    session.answer("错", index=2)
    assert session.answered_count == 3
    assert session.unanswered_indices() == [3]
    results = session.submit()
    assert session.is_completed
    assert [r.is_correct for r in results] == [True, True, False, False]
    stats = session.stats()
    assert stats.correct == 2
    assert stats.accuracy == 50.0


def test_exam_session_scoring(sample_questions):
    exam = ExamSettings.from_configs([
        ExamConfig(question_type=SINGLE_CHOICE, count=5, score=2),
        ExamConfig(question_type=TRUE_FALSE, count=1, score=1),
    ])
    session = QuizSession(sample_questions, QuizSettings(mode="exam"), exam, rng=random.Random(4))
    questions = session.start()
    assert [q.type for q in questions] == [SINGLE_CHOICE, TRUE_FALSE]
    session.answer("A", index=0)
    session.submit()
    stats = session.stats()
    assert stats.max_score == 3
    assert stats.total_score == 2
    payload = session.export_payload()
    assert payload["examSettings"] is exam


def test_retry_draws_again(sample_questions):
    session = QuizSession(sample_questions, QuizSettings(order_mode="random"), rng=random.Random(2))
    session.start()
    session.answer("A")
    session.submit()
    session.retry()
    assert not session.is_completed
    assert session.results == []
    assert session.answered_count == 0
    assert sorted(q.id for q in session.quiz_questions) == [0, 1, 2, 3]
    assert any(q.type == MULTIPLE_CHOICE for q in session.quiz_questions)


def test_hint_shows_answer_before_answering(sample_questions):
    session = QuizSession(sample_questions, QuizSettings())
    session.start()
    hint = session.hint()
    assert not hint.is_correct
    assert hint.correct_answer_text == "A. Paris"
    session.answer("A")
    assert session.hint().is_correct


def test_hint_available_in_review_and_exam(sample_questions):
    for mode in ("review", "exam"):
        session = QuizSession(sample_questions, QuizSettings(mode=mode))
        session.start()
        assert session.hint(index=2).correct_answer_text == "A. 正确"


def test_no_hint_in_recite_mode(sample_questions):
    session = QuizSession(sample_questions, QuizSettings(mode="recite"))
    session.start()
    assert session.hint() is None
