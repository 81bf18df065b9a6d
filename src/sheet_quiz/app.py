"""Interactive CLI application."""
import argparse
import logging
from dataclasses import dataclass, field

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from sheet_quiz.checker import check_answer, option_letters, option_text
from sheet_quiz.db import DEFAULT_DB_PATH, init_db
from sheet_quiz.headers import active_mapping, build_multi_sheet_config, missing_fields
from sheet_quiz.importer import ImporterError, SheetData, process_multi_sheet_questions, read_workbook
from sheet_quiz.models import (
    FILL_BLANK, MULTIPLE_CHOICE, ORDER_MODES, QUESTION_TYPES, QUIZ_MODES,
    ExamSettings, HeaderMapping, MultiSheetConfig, Question, QuestionRange, QuizSettings,
)
from sheet_quiz.quiz import count_by_type, validate_start
from sheet_quiz.results import CORRECTNESS_FILTERS, filter_review, get_type_breakdown
from sheet_quiz.session import QuizSession
from sheet_quiz.storage import (
    StorageError, import_exam_config_file, load_exam_config, save_exam_config,
)

console = Console()
logger = logging.getLogger(__name__)

EXIT_WORDS = ("q", "menu")
MAPPING_FIELDS = list(HeaderMapping.__dataclass_fields__)


class SessionExitRequested(Exception):
    """The user typed q or menu in the middle of a quiz."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


@dataclass
class AppState:
    db_path: str = DEFAULT_DB_PATH
    sheets: list[SheetData] = field(default_factory=list)
    sheet_config: MultiSheetConfig = field(default_factory=MultiSheetConfig)
    settings: QuizSettings = field(default_factory=QuizSettings)
    exam_settings: ExamSettings | None = None
    questions: list[Question] = field(default_factory=list)
    session: QuizSession | None = None

    def rebuild_questions(self) -> None:
        self.questions = process_multi_sheet_questions(self.sheets, self.sheet_config)


def parse_ranges(text: str) -> list[QuestionRange]:
    """"1-10, 20-30, 42" -> ranges. Malformed parts are skipped."""
    ranges = []
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        start, _, end = part.partition("-")
        try:
            start_n = int(start)
            end_n = int(end) if end else start_n
        except ValueError:
            console.print(f"[yellow]Skipping range {part!r}[/yellow]")
            continue
        ranges.append(QuestionRange(start=min(start_n, end_n), end=max(start_n, end_n)))
    return ranges


def format_ranges(ranges: list[QuestionRange]) -> str:
    return ", ".join(f"{r.start}-{r.end}" for r in ranges) or "all"


def show_welcome():
    console.print(Panel(
        "[bold]Sheet Quiz[/bold]\n[dim]Practice and exams from your own spreadsheets[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("load", "Open a question workbook"),
        ("sheets", "Choose sheets"),
        ("mapping", "Map columns to question fields"),
        ("settings", "Quiz mode, order, limit, ranges"),
        ("exam", "Exam question counts and scores"),
        ("exam-file", "Import an exam config (.json/.yaml)"),
        ("start", "Start answering"),
        ("results", "Last results"),
        ("review", "Review answers"),
        ("retry", "New round with the same settings"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def cmd_load(state: AppState, file_path: str | None = None):
    file_path = file_path or Prompt.ask("Workbook path")
    state.sheets = read_workbook(file_path)
    state.sheet_config = build_multi_sheet_config(state.sheets)
    state.questions = []
    state.session = None
    console.print(f"[green]Loaded {len(state.sheets)} sheet(s) from {file_path}[/green]")
    if len(state.sheets) == 1:
        state.sheet_config.sheets[0].is_selected = True
        state.rebuild_questions()
        console.print(f"[dim]Selected the only sheet: {len(state.questions)} question(s)[/dim]")


def show_sheets(state: AppState):
    table = Table(title="Sheets")
    table.add_column("#", justify="right")
    table.add_column("Sheet", style="cyan")
    table.add_column("Rows", justify="right")
    table.add_column("Selected")
    table.add_column("Mapping")
    for i, sheet in enumerate(state.sheet_config.sheets, 1):
        mapping = active_mapping(sheet, state.sheet_config)
        table.add_row(
            str(i), sheet.sheet_name, str(sheet.question_count),
            "[green]yes[/green]" if sheet.is_selected else "",
            "global" if mapping is state.sheet_config.global_mapping else "own",
        )
    console.print(table)


def cmd_sheets(state: AppState):
    if not state.sheets:
        console.print("[yellow]Load a workbook first.[/yellow]")
        return
    show_sheets(state)
    picks = Prompt.ask("Toggle sheets (e.g. 1,3)", default="")
    for pick in picks.split(","):
        pick = pick.strip()
        if pick.isdigit() and 1 <= int(pick) <= len(state.sheet_config.sheets):
            sheet = state.sheet_config.sheets[int(pick) - 1]
            sheet.is_selected = not sheet.is_selected
    state.rebuild_questions()
    console.print(f"[green]{len(state.questions)} question(s) from the selected sheets[/green]")


def _editable_mapping(state: AppState) -> tuple[HeaderMapping, list[str]]:
    """The mapping the mapping screen edits, and the headers to pick from."""
    config = state.sheet_config
    selected = config.selected_sheets()
    target = None
    if not config.use_global_mapping and selected:
        target = next((s for s in selected if not s.use_global_mapping), selected[0])
        target.use_global_mapping = False
    name = target.sheet_name if target else (selected[0].sheet_name if selected else state.sheets[0].name)
    headers = next(s.headers for s in state.sheets if s.name == name)
    return (target.mapping if target else config.global_mapping), headers


def cmd_mapping(state: AppState):
    config = state.sheet_config
    if not config.sheets:
        console.print("[yellow]Load a workbook first.[/yellow]")
        return
    config.use_global_mapping = Confirm.ask("Use one mapping for every sheet?", default=config.use_global_mapping)
    mapping, headers = _editable_mapping(state)

    while True:
        table = Table(title="Header mapping")
        table.add_column("Field", style="cyan")
        table.add_column("Column")
        for name in MAPPING_FIELDS:
            table.add_row(name, getattr(mapping, name) or "[dim]-[/dim]")
        console.print(table)
        missing = missing_fields(mapping)
        if missing:
            console.print(f"[yellow]Required fields not mapped: {', '.join(missing)}[/yellow]")
        name = Prompt.ask("Field to change (Enter when done)", choices=MAPPING_FIELDS + [""], default="")
        if not name:
            break
        for i, header in enumerate(headers, 1):
            console.print(f"  [cyan]{i}[/cyan]) {header}")
        pick = IntPrompt.ask("Column (0 to clear)", default=0)
        setattr(mapping, name, headers[pick - 1] if 1 <= pick <= len(headers) else "")
    state.rebuild_questions()
    console.print(f"[green]{len(state.questions)} question(s) with this mapping[/green]")


def cmd_settings(state: AppState):
    s = state.settings
    s.mode = Prompt.ask("Mode", choices=list(QUIZ_MODES), default=s.mode)
    s.order_mode = Prompt.ask("Order", choices=list(ORDER_MODES), default=s.order_mode)
    s.limit = max(0, IntPrompt.ask("Question limit (0 = all)", default=s.limit))
    ranges = Prompt.ask("Question ranges, e.g. 1-50,80-100 (blank = all)", default=format_ranges(s.question_ranges))
    s.question_ranges = [] if ranges.strip() in ("", "all") else parse_ranges(ranges)
    s.use_custom_ranges = bool(s.question_ranges)
    s.judgement_true = Prompt.ask("Label for true", default=s.judgement_true)
    s.judgement_false = Prompt.ask("Label for false", default=s.judgement_false)
    s.fill_blank_separator = Prompt.ask("Fill-blank separator", default=s.fill_blank_separator)
    if s.mode == "exam" and state.exam_settings is None:
        state.exam_settings = ExamSettings.default()


def show_exam(state: AppState):
    available = count_by_type(state.questions)
    table = Table(title="Exam")
    table.add_column("Type", style="cyan")
    table.add_column("In bank", justify="right")
    table.add_column("Count", justify="right")
    table.add_column("Score each", justify="right")
    table.add_column("Ranges")
    for c in state.exam_settings.configs:
        table.add_row(
            c.question_type, str(available.get(c.question_type, 0)), str(c.count), str(c.score),
            format_ranges(c.question_ranges) if c.use_custom_ranges else "all",
        )
    console.print(table)
    console.print(f"  Total: [bold]{state.exam_settings.total_questions}[/bold] questions, "
                  f"[bold]{state.exam_settings.total_score}[/bold] points")


def cmd_exam(state: AppState):
    if state.exam_settings is None:
        state.exam_settings = ExamSettings.default()
    while True:
        show_exam(state)
        question_type = Prompt.ask("Type to change (Enter when done)", choices=list(QUESTION_TYPES) + [""], default="")
        if not question_type:
            break
        config = state.exam_settings.config_for(question_type)
        config.count = max(0, IntPrompt.ask("Questions", default=config.count))
        config.score = max(0.0, float(Prompt.ask("Score per question", default=str(config.score))))
        ranges = Prompt.ask("Ranges within this type (blank = all)", default="")
        config.question_ranges = parse_ranges(ranges)
        config.use_custom_ranges = bool(config.question_ranges)
        save_exam_config(state.db_path, state.exam_settings)


def cmd_exam_file(state: AppState):
    state.exam_settings = import_exam_config_file(Prompt.ask("Exam config path"))
    save_exam_config(state.db_path, state.exam_settings)
    state.settings.mode = "exam"
    show_exam(state)


def show_question(session: QuizSession):
    q = session.current
    settings = session.settings
    index = session.current_index + 1
    console.print(Panel(q.text, title=f"Q{index}/{len(session.quiz_questions)} · {q.type}", border_style="cyan"))
    for letter in option_letters(q, settings):
        console.print(f"  [cyan]{letter})[/cyan] {option_text(q, letter, settings)}")
    if q.type == FILL_BLANK:
        console.print(f"[dim]Separate blanks with {settings.fill_blank_separator!r}[/dim]")
    elif q.type == MULTIPLE_CHOICE:
        console.print("[dim]Pick every correct letter, e.g. AC[/dim]")
    current = session.user_answers[session.current_index]
    if current:
        console.print(f"[dim]Current answer: {current}[/dim]")


def show_feedback(session: QuizSession):
    result = session.feedback()
    if result is None:
        return
    q = session.current
    if session.settings.mode == "recite":
        console.print(Panel(result.correct_answer_text, title="Answer", border_style="green"))
    elif result.is_correct:
        console.print("[green]Correct![/green]")
    else:
        console.print(f"[red]Incorrect.[/red] Answer: [green]{result.correct_answer_text}[/green]")
    if q.explanation:
        console.print(f"[dim]{q.explanation}[/dim]")


def show_hint(session: QuizSession):
    result = session.hint()
    if result is None:
        return
    console.print(f"[yellow]Hint:[/yellow] {result.correct_answer_text}")


def run_quiz_session(session: QuizSession) -> None:
    """Ask questions until the last one is answered or the user quits.

    '<' and '>' move between questions, '#N' jumps to question N, '?' shows
    the answer, Enter skips, q/menu ends early.
    """
    if not session.quiz_questions:
        console.print("[yellow]No questions available![/yellow]")
        return
    recite = session.settings.mode == "recite"
    console.print(f"\n[bold]{session.settings.mode.title()}[/bold]: {len(session.quiz_questions)} questions\n")
    console.print("[dim]< and > move, #N jumps, ? shows a hint, q stops[/dim]\n")
    while True:
        show_question(session)
        if recite:
            show_feedback(session)
        try:
            answer = session_prompt("\nYour answer" if not recite else "\n[dim]Enter for next[/dim]", default="")
        except SessionExitRequested:
            if session.unanswered_indices() and not recite:
                console.print(f"[yellow]{len(session.unanswered_indices())} question(s) unanswered.[/yellow]")
            raise
        if answer == "<":
            session.previous()
            continue
        if answer.startswith("#") and answer[1:].strip().isdigit():
            session.go_to(int(answer[1:]) - 1)
            continue
        if answer == "?" and not recite:
            show_hint(session)
            continue
        if answer in (">", "") or recite:
            if session.is_last:
                return
            session.next()
            continue
        session.answer(answer)
        show_feedback(session)
        console.print()
        if session.is_last:
            return
        session.next()


def show_results(session: QuizSession):
    if not session.is_completed:
        console.print("[yellow]No finished quiz yet.[/yellow]")
        return
    stats = session.stats()
    summary = (f"Correct [bold]{stats.correct}[/bold] / {stats.total}  |  "
               f"Incorrect [bold]{stats.incorrect}[/bold]  |  Accuracy [bold]{stats.accuracy}%[/bold]")
    if session.settings.mode == "exam" and session.exam_settings is not None:
        summary += f"\nScore [bold]{stats.total_score}[/bold] / {stats.max_score}"
        if stats.unscored:
            summary += f"  [yellow]({stats.unscored} question(s) had no score configured)[/yellow]"
    console.print(Panel(summary, title="Results", border_style="green" if stats.accuracy >= 60 else "red"))

    table = Table(title="By type")
    table.add_column("Type", style="cyan")
    table.add_column("Questions", justify="right")
    table.add_column("Correct", justify="right")
    table.add_column("Accuracy", justify="right")
    for question_type, row in get_type_breakdown(session.quiz_questions, session.results).items():
        table.add_row(question_type, str(row["total"]), str(row["correct"]), f"{row['accuracy']}%")
    console.print(table)


def cmd_review(session: QuizSession):
    if not session.is_completed:
        console.print("[yellow]No finished quiz yet.[/yellow]")
        return
    correctness = Prompt.ask("Show", choices=list(CORRECTNESS_FILTERS), default="incorrect")
    present_types = sorted({q.type for q in session.quiz_questions}, key=QUESTION_TYPES.index)
    question_type = Prompt.ask("Type", choices=present_types + ["all"], default="all")
    pairs = filter_review(
        session.quiz_questions, session.results, correctness,
        None if question_type == "all" else question_type,
    )
    if not pairs:
        console.print("[dim]Nothing to show.[/dim]")
        return
    for question, result in pairs:
        check = check_answer(question, result.user_answer, session.settings)
        color = "green" if result.is_correct else "red"
        body = question.text
        if check.user_answer_text:
            body += f"\n\n[{color}]Your answer:[/{color}] {check.user_answer_text}"
        else:
            body += f"\n\n[{color}]Not answered[/{color}]"
        body += f"\n[green]Correct answer:[/green] {check.correct_answer_text}"
        if question.explanation:
            body += f"\n[dim]{question.explanation}[/dim]"
        console.print(Panel(body, title=question.type, border_style=color))


def cmd_start(state: AppState, retry: bool = False):
    if retry and state.session is not None:
        state.session.retry()
    else:
        if state.sheets:
            state.rebuild_questions()
        exam = state.exam_settings if state.settings.mode == "exam" else None
        problems = validate_start(state.sheet_config, state.settings, exam, state.questions)
        if problems:
            for problem in problems:
                console.print(f"[yellow]{problem}[/yellow]")
            return
        state.session = QuizSession(state.questions, state.settings, exam)
        state.session.start()
    try:
        run_quiz_session(state.session)
    except SessionExitRequested:
        if not Confirm.ask("Submit now?", default=True):
            console.print("[dim]Quiz discarded.[/dim]")
            return
    state.session.submit()
    show_results(state.session)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(prog="sheet-quiz", description="Quiz yourself from a spreadsheet.")
    parser.add_argument("workbook", nargs="?", help="question workbook (.xlsx or .csv)")
    parser.add_argument("--db", default=DEFAULT_DB_PATH, help="settings database path")
    parser.add_argument("-v", "--verbose", action="store_true", help="show debug logging")
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    state = AppState(db_path=args.db)
    init_db(state.db_path)
    state.exam_settings = load_exam_config(state.db_path)
    if state.exam_settings is not None:
        console.print("[dim]Loaded saved exam config.[/dim]")

    show_welcome()
    if args.workbook:
        try:
            cmd_load(state, args.workbook)
        except ImporterError as e:
            console.print(f"[red]{e}[/red]")

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="start" if state.questions else "load").strip().lower()
        try:
            if choice == "load":
                cmd_load(state)
            elif choice == "sheets":
                cmd_sheets(state)
            elif choice == "mapping":
                cmd_mapping(state)
            elif choice == "settings":
                cmd_settings(state)
            elif choice == "exam":
                cmd_exam(state)
            elif choice == "exam-file":
                cmd_exam_file(state)
            elif choice == "start":
                cmd_start(state)
            elif choice == "retry":
                cmd_start(state, retry=state.session is not None)
            elif choice == "results":
                if state.session:
                    show_results(state.session)
            elif choice == "review":
                if state.session:
                    cmd_review(state.session)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]Bye![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except (ImporterError, StorageError) as e:
            console.print(f"[red]{e}[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            logger.debug("Command %s failed", choice, exc_info=True)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
