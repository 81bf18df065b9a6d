"""Quiz and exam question selection."""
import logging
import random

from sheet_quiz.headers import missing_fields
from sheet_quiz.models import ExamSettings, MultiSheetConfig, Question, QuestionRange, QuizSettings

logger = logging.getLogger(__name__)


def select_ranges(items: list, ranges: list[QuestionRange]) -> list:
    """Items whose 1-based position falls in any range, in their original order."""
    selected = set()
    for r in ranges:
        for i in range(r.start - 1, min(r.end, len(items))):
            if i >= 0:
                selected.add(i)
    return [item for index, item in enumerate(items) if index in selected]


def generate_exam(questions: list[Question], exam_settings: ExamSettings, rng: random.Random) -> list[Question]:
    exam_questions = []
    for config in exam_settings.configs:
        if config.count <= 0:
            continue
        available = [q for q in questions if q.type == config.question_type]
        if config.use_custom_ranges and config.question_ranges:
            available = select_ranges(available, config.question_ranges)
        if not available:
            continue
        shuffled = list(available)
        rng.shuffle(shuffled)
        exam_questions.extend(shuffled[:min(config.count, len(shuffled))])
    return exam_questions


def generate_quiz(
    questions: list[Question],
    settings: QuizSettings,
    exam_settings: ExamSettings | None = None,
    rng: random.Random | None = None,
) -> list[Question]:
    """Build the ordered list of questions for one quiz or exam session."""
    rng = rng or random.Random()

    if settings.mode == "exam" and exam_settings is not None:
        pool = generate_exam(questions, exam_settings, rng)
    else:
        pool = list(questions)
        if settings.use_custom_ranges and settings.question_ranges:
            pool = select_ranges(pool, settings.question_ranges)
        if settings.order_mode == "random":
            rng.shuffle(pool)
        if settings.limit > 0 and len(pool) > settings.limit:
            pool = pool[:settings.limit]

    logger.info("Generated %d question(s) for %s mode from a bank of %d", len(pool), settings.mode, len(questions))
    return pool


def count_by_type(questions: list[Question]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for q in questions:
        counts[q.type] = counts.get(q.type, 0) + 1
    return counts


def validate_start(
    config: MultiSheetConfig,
    settings: QuizSettings,
    exam_settings: ExamSettings | None,
    questions: list[Question],
) -> list[str]:
    """Problems that should stop a quiz from starting. Empty means ready."""
    selected = config.selected_sheets()
    if not selected:
        return ["Select at least one sheet."]

    problems = []
    if config.use_global_mapping:
        missing = missing_fields(config.global_mapping)
        if missing:
            problems.append(f"Global header mapping is incomplete: {', '.join(missing)} not mapped.")
    else:
        incomplete = [
            s.sheet_name for s in selected
            if not s.use_global_mapping and not s.mapping.is_complete()
        ]
        if any(s.use_global_mapping for s in selected) and not config.global_mapping.is_complete():
            incomplete.extend(s.sheet_name for s in selected if s.use_global_mapping)
        if incomplete:
            problems.append(f"Header mapping is incomplete for: {', '.join(incomplete)}.")

    if settings.mode == "exam" and exam_settings is not None:
        if exam_settings.total_questions == 0:
            problems.append("The exam has no questions configured.")
        available = count_by_type(questions)
        too_many = [
            c.question_type for c in exam_settings.configs
            if c.count > 0 and c.count > available.get(c.question_type, 0)
        ]
        if too_many:
            problems.append(f"Exam asks for more questions than the bank has for: {', '.join(too_many)}.")

    if not problems and not questions:
        problems.append("No questions could be read; check the sheet contents and header mapping.")
    return problems
