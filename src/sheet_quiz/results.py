"""Result calculation, quiz/exam statistics and report payloads."""
import logging

from sheet_quiz.checker import (
    check_answer, format_correct_answer, format_judgement_answer,
)
from sheet_quiz.models import (
    TRUE_FALSE, ExamSettings, Question, QuestionResult, QuizSettings, QuizStats,
)

logger = logging.getLogger(__name__)

CORRECTNESS_FILTERS = ("all", "correct", "incorrect")

DETAIL_HEADER = [
    "题号", "题目类型", "题目内容", "选项A", "选项B", "选项C", "选项D", "选项E", "选项F",
    "您的答案", "正确答案", "是否正确", "解析",
]


def calculate_results(questions: list[Question], user_answers: list, settings: QuizSettings) -> list[QuestionResult]:
    results = []
    for index, question in enumerate(questions):
        user_answer = user_answers[index] if index < len(user_answers) else None
        results.append(QuestionResult(
            question_id=question.id,
            is_correct=check_answer(question, user_answer, settings).is_correct,
            user_answer=user_answer,
            correct_answer=question.answer,
            question_type=question.type,
        ))
    return results


def _accuracy(correct: int, total: int) -> float:
    if total == 0:
        return 0.0
    return round((correct / total) * 100, 1)


def format_score(score: float) -> float | int:
    """Round to at most 2 decimals; whole numbers come back as int."""
    rounded = round(score, 2)
    if float(rounded).is_integer():
        return int(rounded)
    return rounded


def get_quiz_stats(results: list[QuestionResult]) -> QuizStats:
    total = len(results)
    correct = sum(1 for r in results if r.is_correct)
    return QuizStats(
        total=total,
        correct=correct,
        incorrect=total - correct,
        accuracy=_accuracy(correct, total),
        total_score=correct,
        max_score=total,
    )


def get_exam_stats(results: list[QuestionResult], exam_settings: ExamSettings) -> QuizStats:
    """Quiz stats plus weighted score.

    max_score counts every presented question at its type's score. Questions
    whose type has no exam config score nothing and are counted as unscored.
    """
    total = len(results)
    correct = sum(1 for r in results if r.is_correct)
    total_score = 0
    max_score = 0
    unscored = 0
    for result in results:
        config = exam_settings.config_for(result.question_type)
        if config is None:
            unscored += 1
            continue
        max_score += config.score
        if result.is_correct:
            total_score += config.score
    if unscored:
        logger.warning("%d question(s) have no exam config for their type and were not scored", unscored)
    return QuizStats(
        total=total,
        correct=correct,
        incorrect=total - correct,
        accuracy=_accuracy(correct, total),
        total_score=format_score(total_score),
        max_score=format_score(max_score),
        unscored=unscored,
    )


def get_type_breakdown(questions: list[Question], results: list[QuestionResult]) -> dict[str, dict]:
    breakdown: dict[str, dict] = {}
    for question, result in zip(questions, results):
        row = breakdown.setdefault(question.type, {"total": 0, "correct": 0})
        row["total"] += 1
        if result.is_correct:
            row["correct"] += 1
    for row in breakdown.values():
        row["accuracy"] = _accuracy(row["correct"], row["total"])
    return breakdown


def filter_review(
    questions: list[Question],
    results: list[QuestionResult],
    correctness: str = "all",
    question_type: str | None = None,
) -> list[tuple[Question, QuestionResult]]:
    """(question, result) pairs for the review screen."""
    pairs = []
    for question, result in zip(questions, results):
        if correctness == "correct" and not result.is_correct:
            continue
        if correctness == "incorrect" and result.is_correct:
            continue
        if question_type and question.type != question_type:
            continue
        pairs.append((question, result))
    return pairs


def detail_rows(questions: list[Question], results: list[QuestionResult], settings: QuizSettings) -> list[list[str]]:
    """Per-question table: header row followed by one row per question."""
    rows = [list(DETAIL_HEADER)]
    for index, (question, result) in enumerate(zip(questions, results), 1):
        if question.type == TRUE_FALSE:
            options = [settings.judgement_true, settings.judgement_false]
        else:
            options = list(question.options)
        options = (options + [""] * 6)[:6]
        rows.append([
            str(index),
            question.type,
            question.text,
            *options,
            format_judgement_answer(result.user_answer, question, settings),
            format_correct_answer(question, settings),
            "正确" if result.is_correct else "错误",
            question.explanation or "",
        ])
    return rows


def summary_rows(
    questions: list[Question],
    results: list[QuestionResult],
    settings: QuizSettings,
    stats: QuizStats,
    exam_settings: ExamSettings | None = None,
) -> list[list]:
    rows = [
        ["答题总结报告"],
        [""],
        ["总体统计"],
        ["总题目数", stats.total],
        ["答对题目", stats.correct],
        ["答错题目", stats.incorrect],
        ["正确率", f"{stats.accuracy}%"],
    ]
    if settings.mode == "exam" and exam_settings is not None:
        rows.append(["得分", f"{float(stats.total_score):.1f}/{float(stats.max_score):.1f}"])
    rows += [[""], ["题型统计"], ["题型", "题目数量", "答对数量", "正确率"]]
    for question_type, row in get_type_breakdown(questions, results).items():
        rows.append([question_type, row["total"], row["correct"], f"{row['accuracy']}%"])
    rows += [[""], ["答题模式", settings.mode], ["题目顺序", settings.order_mode]]
    return rows


def build_export_payload(
    questions: list[Question],
    results: list[QuestionResult],
    settings: QuizSettings,
    exam_settings: ExamSettings | None = None,
) -> dict:
    """Everything an external renderer needs to write a results report."""
    if settings.mode == "exam" and exam_settings is not None:
        stats = get_exam_stats(results, exam_settings)
    else:
        stats = get_quiz_stats(results)
    return {
        "questions": questions,
        "results": results,
        "settings": settings,
        "examSettings": exam_settings,
        "stats": stats,
        "detail_rows": detail_rows(questions, results, settings),
        "summary_rows": summary_rows(questions, results, settings, stats, exam_settings),
    }
