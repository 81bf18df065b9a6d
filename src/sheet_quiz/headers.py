"""Column header auto-detection and per-sheet mapping resolution."""
import logging

from sheet_quiz.models import HeaderMapping, MultiSheetConfig, SheetConfig

logger = logging.getLogger(__name__)

# Checked in order for each header; the first rule with a keyword inside the header decides it.
HEADER_KEYWORDS = [
    ("question", ["题干", "题目"]),
    ("type", ["题型", "类型"]),
    ("answer", ["答案"]),
    ("explanation", ["解析", "解释"]),
] + [
    (f"option_{letter}", [f"选项{letter}", f"{letter}选项"])
    for letter in "abcdef"
]

REQUIRED_FIELDS = ("question", "type", "answer")


def match_header(header: str) -> str | None:
    """Return the mapping field a single header looks like, if any."""
    header_lower = header.lower()
    for field_name, keywords in HEADER_KEYWORDS:
        if any(kw in header_lower for kw in keywords):
            return field_name
    return None


def auto_map_headers(headers: list) -> HeaderMapping:
    """Guess a HeaderMapping from column headers.

    A header fills at most one field. When several headers match the same
    field, the first one (in column order) keeps it.
    """
    mapping = HeaderMapping()
    for header in headers:
        if not isinstance(header, str) or not header.strip():
            continue
        field_name = match_header(header)
        if field_name is None:
            continue
        current = getattr(mapping, field_name)
        if current:
            logger.debug("Header %r also matches %s, keeping %r", header, field_name, current)
            continue
        setattr(mapping, field_name, header)
    return mapping


def missing_fields(mapping: HeaderMapping) -> list[str]:
    return [name for name in REQUIRED_FIELDS if not getattr(mapping, name)]


def active_mapping(sheet: SheetConfig, config: MultiSheetConfig) -> HeaderMapping:
    """The mapping that applies to a sheet when generating questions."""
    if config.use_global_mapping or sheet.use_global_mapping:
        return config.global_mapping
    return sheet.mapping


def build_multi_sheet_config(sheets: list) -> MultiSheetConfig:
    """Initial configuration for a freshly loaded workbook.

    Nothing is selected yet; every sheet gets its own auto-mapping and the
    global mapping is taken from the first sheet's headers.
    """
    configs = [
        SheetConfig(
            sheet_name=sheet.name,
            is_selected=False,
            mapping=auto_map_headers(sheet.headers),
            use_global_mapping=True,
            question_count=len(sheet.rows),
        )
        for sheet in sheets
    ]
    global_mapping = auto_map_headers(sheets[0].headers) if sheets else HeaderMapping()
    return MultiSheetConfig(sheets=configs, global_mapping=global_mapping, use_global_mapping=False)
