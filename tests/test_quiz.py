# tests/test_quiz.py
import random

from sheet_quiz.models import (
    FILL_BLANK, MULTIPLE_CHOICE, SINGLE_CHOICE, TRUE_FALSE,
    ExamConfig, ExamSettings, HeaderMapping, MultiSheetConfig, Question, QuestionRange, QuizSettings, SheetConfig,
)
from sheet_quiz.quiz import count_by_type, generate_quiz, select_ranges, validate_start


def make_bank(n=10, question_type=SINGLE_CHOICE):
    return [Question(id=i, text=f"q{i}", type=question_type, answer="A", options=["x", "y"]) for i in range(n)]


def ready_config():
    mapping = HeaderMapping(question="Q", type="T", answer="A")
    return MultiSheetConfig(
        sheets=[SheetConfig(sheet_name="s", is_selected=True, mapping=mapping, use_global_mapping=False)],
        global_mapping=HeaderMapping(),
    )


def test_sequential_keeps_order():
    bank = make_bank(5)
    assert generate_quiz(bank, QuizSettings()) == bank


def test_limit_truncates_prefix():
    bank = make_bank(10)
    quiz = generate_quiz(bank, QuizSettings(limit=3))
    assert [q.id for q in quiz] == [0, 1, 2]


def test_limit_larger_than_pool():
    bank = make_bank(3)
    assert len(generate_quiz(bank, QuizSettings(limit=10))) == 3


def test_random_order_is_permutation_and_seedable():
    bank = make_bank(20)
    settings = QuizSettings(order_mode="random")
    first = generate_quiz(bank, settings, rng=random.Random(7))
    second = generate_quiz(bank, settings, rng=random.Random(7))
    assert first == second
    assert sorted(q.id for q in first) == list(range(20))


def test_random_with_limit_samples_from_whole_pool():
    bank = make_bank(50)
    quiz = generate_quiz(bank, QuizSettings(order_mode="random", limit=5), rng=random.Random(1))
    assert len(quiz) == 5
    assert len({q.id for q in quiz}) == 5


def test_custom_ranges():
    bank = make_bank(10)
    settings = QuizSettings(question_ranges=[QuestionRange(2, 3), QuestionRange(8, 20)], use_custom_ranges=True)
    assert [q.id for q in generate_quiz(bank, settings)] == [1, 2, 7, 8, 9]


def test_ranges_ignored_unless_enabled():
    bank = make_bank(4)
    settings = QuizSettings(question_ranges=[QuestionRange(1, 1)])
    assert len(generate_quiz(bank, settings)) == 4


def test_select_ranges_overlap_and_clipping():
    items = list("abcdef")
    assert select_ranges(items, [QuestionRange(1, 3), QuestionRange(2, 4)]) == list("abcd")
    assert select_ranges(items, [QuestionRange(0, 1)]) == ["a"]
    assert select_ranges(items, [QuestionRange(7, 9)]) == []


def test_exam_takes_what_is_available():
    bank = make_bank(3) + make_bank(4, TRUE_FALSE)
    exam = ExamSettings.from_configs([ExamConfig(question_type=SINGLE_CHOICE, count=5, score=2)])
    quiz = generate_quiz(bank, QuizSettings(mode="exam"), exam, rng=random.Random(3))
    assert len(quiz) == 3
    assert all(q.type == SINGLE_CHOICE for q in quiz)


def test_exam_concatenates_in_config_order():
    bank = make_bank(5, TRUE_FALSE) + make_bank(5, SINGLE_CHOICE) + make_bank(5, FILL_BLANK)
    exam = ExamSettings.from_configs([
        ExamConfig(question_type=SINGLE_CHOICE, count=2),
        ExamConfig(question_type=MULTIPLE_CHOICE, count=3),
        ExamConfig(question_type=TRUE_FALSE, count=1),
        ExamConfig(question_type=FILL_BLANK, count=0),
    ])
    quiz = generate_quiz(bank, QuizSettings(mode="exam"), exam, rng=random.Random(0))
    assert [q.type for q in quiz] == [SINGLE_CHOICE, SINGLE_CHOICE, TRUE_FALSE]


def test_exam_ranges_index_the_type_filtered_list():
    bank = make_bank(4, TRUE_FALSE) + make_bank(4, SINGLE_CHOICE)
    for i, q in enumerate(bank):
        q.id = i
    exam = ExamSettings.from_configs([ExamConfig(
        question_type=SINGLE_CHOICE, count=10,
        question_ranges=[QuestionRange(1, 2)], use_custom_ranges=True,
    )])
    quiz = generate_quiz(bank, QuizSettings(mode="exam"), exam, rng=random.Random(0))
    assert sorted(q.id for q in quiz) == [4, 5]


def test_exam_settings_ignored_outside_exam_mode():
    bank = make_bank(6)
    exam = ExamSettings.from_configs([ExamConfig(question_type=SINGLE_CHOICE, count=1)])
    assert len(generate_quiz(bank, QuizSettings(mode="quiz"), exam)) == 6


def test_count_by_type():
    bank = make_bank(2) + make_bank(3, FILL_BLANK)
    assert count_by_type(bank) == {SINGLE_CHOICE: 2, FILL_BLANK: 3}


def test_validate_start_ok():
    assert validate_start(ready_config(), QuizSettings(), None, make_bank(2)) == []


def test_validate_start_requires_a_sheet():
    config = ready_config()
    config.sheets[0].is_selected = False
    assert validate_start(config, QuizSettings(), None, []) == ["Select at least one sheet."]


def test_validate_start_incomplete_mappings():
    config = ready_config()
    config.sheets[0].mapping.answer = ""
    problems = validate_start(config, QuizSettings(), None, make_bank(1))
    assert problems == ["Header mapping is incomplete for: s."]

    config.use_global_mapping = True
    problems = validate_start(config, QuizSettings(), None, make_bank(1))
    assert "Global header mapping is incomplete" in problems[0]


def test_validate_start_exam_problems():
    exam = ExamSettings.default()
    problems = validate_start(ready_config(), QuizSettings(mode="exam"), exam, make_bank(2))
    assert problems == ["The exam has no questions configured."]

    exam.config_for(SINGLE_CHOICE).count = 5
    exam.recompute()
    problems = validate_start(ready_config(), QuizSettings(mode="exam"), exam, make_bank(2))
    assert len(problems) == 1
    assert SINGLE_CHOICE in problems[0]


def test_validate_start_empty_bank():
    problems = validate_start(ready_config(), QuizSettings(), None, [])
    assert len(problems) == 1
    assert "No questions" in problems[0]
