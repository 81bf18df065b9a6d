"""Workbook import and normalization of rows into questions."""
import csv
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import Path

from sheet_quiz.headers import active_mapping, build_multi_sheet_config
from sheet_quiz.models import (
    FILL_BLANK, MULTIPLE_CHOICE, SINGLE_CHOICE, TRUE_FALSE,
    HeaderMapping, MultiSheetConfig, Question,
)

logger = logging.getLogger(__name__)

# Keyword classification for free-text type labels, first match wins.
# The bare "选择" rule sits after the multiple-choice rule so "多项选择" is reachable.
TYPE_KEYWORDS = [
    (SINGLE_CHOICE, ["单选", "单选题", "single", "单项选择题"]),
    (MULTIPLE_CHOICE, ["多选", "多选题", "multiple", "多项选择", "多项"]),
    (TRUE_FALSE, ["判断", "判断题", "judge", "对错", "是非"]),
    (FILL_BLANK, ["填空", "填空题", "fill", "填写", "补充", "完成"]),
    (SINGLE_CHOICE, ["选择", "选择题"]),
]

CSV_ENCODINGS = ("utf-8-sig", "gb18030")


class ImporterError(Exception):
    """Raised when a workbook cannot be read."""


def cell_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


class Row:
    """One spreadsheet row, looked up by header name.

    Missing headers and empty cells read as "" so a row with an unmapped or
    blank required column is dropped during normalization.
    """

    def __init__(self, cells: dict):
        self._cells = cells

    def get(self, header: str) -> str:
        if not header:
            return ""
        return cell_text(self._cells.get(header))

    def __repr__(self):
        return f"Row({self._cells!r})"


@dataclass
class SheetData:
    name: str
    headers: list[str] = field(default_factory=list)
    rows: list[Row] = field(default_factory=list)


def _unique_headers(raw_headers) -> list[str | None]:
    """Header text per column; blank headers become None, repeats get _1, _2 suffixes."""
    seen: dict[str, int] = {}
    headers = []
    for raw in raw_headers:
        text = cell_text(raw).strip()
        if not text:
            headers.append(None)
            continue
        if text in seen:
            seen[text] += 1
            text = f"{text}_{seen[text]}"
        else:
            seen[text] = 0
        headers.append(text)
    return headers


def rows_to_sheet(name: str, values: list) -> SheetData:
    """Build a SheetData from a header row followed by data rows."""
    if not values:
        return SheetData(name=name)
    headers = _unique_headers(values[0])
    rows = []
    for raw in values[1:]:
        cells = {
            header: value
            for header, value in zip(headers, raw)
            if header is not None
        }
        if all(cell_text(v).strip() == "" for v in cells.values()):
            continue
        rows.append(Row(cells))
    return SheetData(name=name, headers=[h for h in headers if h is not None], rows=rows)


def _read_csv(path: Path) -> list:
    """CSV rows, trying UTF-8 first and then GB18030."""
    for encoding in CSV_ENCODINGS:
        try:
            with open(path, newline="", encoding=encoding) as f:
                return list(csv.reader(f))
        except UnicodeDecodeError:
            logger.debug("%s is not %s", path.name, encoding)
        except csv.Error as e:
            raise ImporterError(f"Could not read {path.name}: {e}") from e
    raise ImporterError(f"{path.name}: could not decode as {' or '.join(CSV_ENCODINGS)}")


def read_workbook(file_path: str) -> list[SheetData]:
    path = Path(file_path)
    if not path.exists():
        raise ImporterError(f"File not found: {file_path}")
    suffix = path.suffix.lower()

    if suffix in (".xlsx", ".xlsm"):
        from openpyxl import load_workbook
        try:
            workbook = load_workbook(file_path, read_only=True, data_only=True)
        except Exception as e:
            raise ImporterError(f"Could not read workbook {path.name}: {e}") from e
        try:
            sheets = [
                rows_to_sheet(ws.title, [list(r) for r in ws.iter_rows(values_only=True)])
                for ws in workbook.worksheets
            ]
        finally:
            workbook.close()
    elif suffix == ".csv":
        sheets = [rows_to_sheet(path.stem, _read_csv(path))]
    elif suffix == ".xls":
        raise ImporterError(f"{path.name}: legacy .xls workbooks are not supported, re-save it as .xlsx")
    else:
        raise ImporterError(f"{path.name}: unsupported file type {suffix or '(none)'}")

    logger.info("Read %d sheet(s) from %s", len(sheets), path.name)
    return sheets


def normalize_question_type(label: str) -> str:
    """Classify a free-text type label into one of the four question types."""
    label_lower = label.lower()
    for question_type, keywords in TYPE_KEYWORDS:
        if any(kw in label_lower for kw in keywords):
            return question_type
    return SINGLE_CHOICE


def process_questions(rows: list[Row], mapping: HeaderMapping) -> list[Question]:
    """Turn rows into questions, dropping rows missing text, type or answer."""
    questions = []
    for index, row in enumerate(rows):
        text = row.get(mapping.question)
        type_label = row.get(mapping.type).strip()
        answer = row.get(mapping.answer).strip()
        if not (text and type_label and answer):
            continue
        options = [
            row.get(column)
            for column in mapping.option_columns()
            if column and row.get(column)
        ]
        questions.append(Question(
            id=index,
            text=text,
            type=normalize_question_type(type_label),
            answer=answer,
            options=options,
            explanation=row.get(mapping.explanation) if mapping.explanation else "",
        ))
    dropped = len(rows) - len(questions)
    if dropped:
        logger.info("Dropped %d row(s) missing question text, type or answer", dropped)
    return questions


def process_multi_sheet_questions(sheets: list[SheetData], config: MultiSheetConfig) -> list[Question]:
    """Normalize every selected sheet and merge them with ids unique across sheets."""
    by_name = {sheet.name: sheet for sheet in sheets}
    all_questions = []
    for sheet_config in config.selected_sheets():
        sheet = by_name.get(sheet_config.sheet_name)
        if sheet is None:
            logger.warning("Selected sheet %r is not in the workbook", sheet_config.sheet_name)
            continue
        all_questions.extend(process_questions(sheet.rows, active_mapping(sheet_config, config)))
    for new_id, question in enumerate(all_questions):
        question.id = new_id
    return all_questions


def load_question_bank(file_path: str, config: MultiSheetConfig | None = None) -> tuple[list[Question], MultiSheetConfig]:
    """Read a workbook and normalize it.

    Without a config, every sheet is selected and mapped from its own headers.
    """
    sheets = read_workbook(file_path)
    if config is None:
        config = build_multi_sheet_config(sheets)
        for sheet_config in config.sheets:
            sheet_config.is_selected = True
            sheet_config.use_global_mapping = False
    return process_multi_sheet_questions(sheets, config), config
