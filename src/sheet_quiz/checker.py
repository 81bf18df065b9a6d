"""Answer checking and answer display formatting for the four question types."""
import re

from sheet_quiz.models import (
    FILL_BLANK, MULTIPLE_CHOICE, OPTION_LETTERS, SINGLE_CHOICE, TRUE_FALSE,
    CheckResult, Question, QuizSettings,
)

TRUE_SYNONYMS = ["a", "对", "正确", "yes", "true", "1", "√", "✓"]
FALSE_SYNONYMS = ["b", "错", "错误", "no", "false", "0", "×", "✗"]

UNANSWERED = "未作答"

_CHOICE_SEPARATORS = re.compile(r"[,，\s]")
_LETTER_PREFIX = re.compile(r"^[A-Z]\.\s*(.+)$", re.DOTALL)


def judgement_labels(settings: QuizSettings) -> list[str]:
    return [settings.judgement_true, settings.judgement_false]


def option_text(question: Question, letter: str, settings: QuizSettings) -> str:
    """Text of the option a letter refers to, "" when there is none."""
    if len(letter) != 1:
        return ""
    index = ord(letter) - ord("A")
    options = judgement_labels(settings) if question.type == TRUE_FALSE else question.options
    if 0 <= index < len(options):
        return options[index] or ""
    return ""


def option_letters(question: Question, settings: QuizSettings) -> list[str]:
    """Letters a user can pick for a question (none for fill-blank)."""
    if question.type == TRUE_FALSE:
        return ["A", "B"]
    if question.type in (SINGLE_CHOICE, MULTIPLE_CHOICE):
        return list(OPTION_LETTERS[:len(question.options)])
    return []


def normalize_choice_answer(answer: str | None) -> str:
    """Strip separators, upper-case and sort: "c, a" -> "AC"."""
    if not answer:
        return ""
    return "".join(sorted(_CHOICE_SEPARATORS.sub("", answer).upper()))


def judgement_letter(answer: str, settings: QuizSettings) -> str:
    """Map a true/false answer to "A" or "B", "" when it is neither."""
    normalized = answer.strip().lower()
    if normalized in [settings.judgement_true.lower()] + TRUE_SYNONYMS:
        return "A"
    if normalized in [settings.judgement_false.lower()] + FALSE_SYNONYMS:
        return "B"
    return ""


def _check_single(question, user_answer, settings) -> CheckResult:
    correct = question.answer.upper()
    user_text = f"{user_answer}. {option_text(question, user_answer, settings)}" if user_answer else ""
    return CheckResult(
        is_correct=user_answer == correct,
        correct_answer_text=f"{correct}. {option_text(question, correct, settings)}",
        user_answer_text=user_text,
    )


def _check_true_false(question, user_answer, settings) -> CheckResult:
    labels = judgement_labels(settings)
    correct_letter = judgement_letter(question.answer, settings)
    if correct_letter:
        correct_text = f"{correct_letter}. {labels[ord(correct_letter) - ord('A')]}"
    else:
        correct_text = question.answer

    user_text = ""
    if user_answer:
        user_letter = user_answer.upper()
        if user_letter not in ("A", "B"):
            user_letter = judgement_letter(user_answer, settings)
        user_text = labels[ord(user_letter) - ord("A")] if user_letter else user_answer

    return CheckResult(
        is_correct=bool(correct_letter) and user_answer == correct_letter,
        correct_answer_text=correct_text,
        user_answer_text=user_text,
    )


def _check_multiple(question, user_answer, settings) -> CheckResult:
    user_sorted = normalize_choice_answer(user_answer)
    correct_sorted = normalize_choice_answer(question.answer)

    def describe(letters):
        return "\n".join(f"{letter}. {option_text(question, letter, settings)}" for letter in letters)

    return CheckResult(
        is_correct=user_answer is not None and user_sorted == correct_sorted,
        correct_answer_text=describe(correct_sorted),
        user_answer_text=describe(user_sorted) if user_answer else "",
    )


def _check_fill_blank(question, user_answer, settings) -> CheckResult:
    separator = settings.fill_blank_separator or "|"
    user_parts = [part.strip().lower() for part in (user_answer or "").split(separator)]
    correct_parts = [part.strip().lower() for part in question.answer.split(separator)]
    return CheckResult(
        is_correct=user_answer is not None and user_parts == correct_parts,
        correct_answer_text=", ".join(question.answer.split(separator)),
        user_answer_text=user_answer or "",
    )


_CHECKERS = {
    SINGLE_CHOICE: _check_single,
    TRUE_FALSE: _check_true_false,
    MULTIPLE_CHOICE: _check_multiple,
    FILL_BLANK: _check_fill_blank,
}


def check_answer(question: Question, user_answer: str | None, settings: QuizSettings) -> CheckResult:
    """Decide whether user_answer is correct and describe both answers.

    A None answer is never correct; pass it to get the correct-answer text
    for a question nobody has answered yet.
    """
    checker = _CHECKERS.get(question.type)
    if checker is None:
        return CheckResult(is_correct=False, correct_answer_text="N/A")
    return checker(question, user_answer, settings)


def format_judgement_answer(answer: str | None, question: Question, settings: QuizSettings) -> str:
    """User answer as shown in reports: true/false letters become their labels."""
    if not answer:
        return UNANSWERED
    if question.type != TRUE_FALSE:
        return answer
    if answer == "A":
        return settings.judgement_true
    if answer == "B":
        return settings.judgement_false
    return answer


def format_correct_answer(question: Question, settings: QuizSettings) -> str:
    """Correct answer as shown in reports."""
    if question.type == TRUE_FALSE:
        text = check_answer(question, None, settings).correct_answer_text
        match = _LETTER_PREFIX.match(text)
        return match.group(1) if match else text
    if question.type in (SINGLE_CHOICE, MULTIPLE_CHOICE):
        return question.answer.upper()
    return question.answer
