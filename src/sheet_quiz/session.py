"""In-memory state for one quiz run: presented questions, answers, results."""
import random

from sheet_quiz.checker import check_answer, judgement_letter, normalize_choice_answer
from sheet_quiz.models import (
    MULTIPLE_CHOICE, SINGLE_CHOICE, TRUE_FALSE,
    CheckResult, ExamSettings, Question, QuestionResult, QuizSettings, QuizStats,
)
from sheet_quiz.quiz import generate_quiz
from sheet_quiz.results import (
    build_export_payload, calculate_results, get_exam_stats, get_quiz_stats,
)


class QuizSession:
    """Holds the questions being asked and the answers given so far.

    quiz_questions is fixed between start()/retry() calls; results are only
    filled in by submit().
    """

    def __init__(
        self,
        questions: list[Question],
        settings: QuizSettings,
        exam_settings: ExamSettings | None = None,
        rng: random.Random | None = None,
    ):
        self.questions = questions
        self.settings = settings
        self.exam_settings = exam_settings
        self.rng = rng or random.Random()
        self.quiz_questions: list[Question] = []
        self.user_answers: list[str | None] = []
        self.current_index = 0
        self.results: list[QuestionResult] = []
        self.is_completed = False

    def start(self) -> list[Question]:
        self.quiz_questions = generate_quiz(self.questions, self.settings, self.exam_settings, rng=self.rng)
        self.user_answers = [None] * len(self.quiz_questions)
        self.current_index = 0
        self.results = []
        self.is_completed = False
        return self.quiz_questions

    def retry(self) -> list[Question]:
        """Draw a fresh set of questions from the full bank."""
        return self.start()

    @property
    def current(self) -> Question | None:
        if not self.quiz_questions:
            return None
        return self.quiz_questions[self.current_index]

    def go_to(self, index: int) -> int:
        if self.quiz_questions:
            self.current_index = max(0, min(index, len(self.quiz_questions) - 1))
        return self.current_index

    def next(self) -> int:
        return self.go_to(self.current_index + 1)

    def previous(self) -> int:
        return self.go_to(self.current_index - 1)

    @property
    def is_last(self) -> bool:
        return self.current_index >= len(self.quiz_questions) - 1

    def _index(self, index: int | None) -> int:
        return self.current_index if index is None else index

    def answer(self, value: str | None, index: int | None = None) -> None:
        """Record an answer. Answers are read-only in recite mode."""
        if self.settings.mode == "recite":
            return
        index = self._index(index)
        question = self.quiz_questions[index]
        if value is not None:
            value = value.strip()
            if question.type == SINGLE_CHOICE:
                value = value.upper()
            elif question.type == TRUE_FALSE:
                # "对" / "yes" / the configured labels all mean A or B
                if value.upper() in ("A", "B"):
                    value = value.upper()
                else:
                    value = judgement_letter(value, self.settings) or value
            elif question.type == MULTIPLE_CHOICE:
                value = normalize_choice_answer(value)
            value = value or None
        self.user_answers[index] = value

    def toggle_option(self, letter: str, index: int | None = None) -> str | None:
        """Add or remove one letter of a multiple-choice answer."""
        index = self._index(index)
        letters = set(self.user_answers[index] or "")
        letter = letter.upper()
        letters.symmetric_difference_update({letter})
        self.answer("".join(sorted(letters)), index)
        return self.user_answers[index]

    def feedback(self, index: int | None = None) -> CheckResult | None:
        """Live feedback: always in recite mode, once answered in review mode."""
        index = self._index(index)
        question = self.quiz_questions[index]
        if self.settings.mode == "recite":
            return check_answer(question, None, self.settings)
        if self.settings.mode == "review" and self.user_answers[index] is not None:
            return check_answer(question, self.user_answers[index], self.settings)
        return None

    def hint(self, index: int | None = None) -> CheckResult | None:
        """Check the answer so far on demand. None in recite mode, which already shows it."""
        if self.settings.mode == "recite":
            return None
        index = self._index(index)
        return check_answer(self.quiz_questions[index], self.user_answers[index], self.settings)

    @property
    def answered_count(self) -> int:
        return sum(1 for a in self.user_answers if a is not None)

    def unanswered_indices(self) -> list[int]:
        return [i for i, a in enumerate(self.user_answers) if a is None]

    def submit(self) -> list[QuestionResult]:
        self.results = calculate_results(self.quiz_questions, self.user_answers, self.settings)
        self.is_completed = True
        return self.results

    def _exam_scored(self) -> bool:
        return self.settings.mode == "exam" and self.exam_settings is not None

    def stats(self) -> QuizStats:
        if self._exam_scored():
            return get_exam_stats(self.results, self.exam_settings)
        return get_quiz_stats(self.results)

    def export_payload(self) -> dict:
        return build_export_payload(
            self.quiz_questions, self.results, self.settings,
            self.exam_settings if self._exam_scored() else None,
        )
