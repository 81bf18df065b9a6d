"""Data classes for question banks, quiz settings and results."""
from dataclasses import asdict, dataclass, field
from typing import Optional

SINGLE_CHOICE = "单选题"
MULTIPLE_CHOICE = "多选题"
TRUE_FALSE = "判断题"
FILL_BLANK = "填空题"

QUESTION_TYPES = (SINGLE_CHOICE, MULTIPLE_CHOICE, TRUE_FALSE, FILL_BLANK)

QUIZ_MODES = ("quiz", "review", "recite", "exam")
ORDER_MODES = ("sequential", "random")

DEFAULT_JUDGEMENT_TRUE = "正确"
DEFAULT_JUDGEMENT_FALSE = "错误"
DEFAULT_FILL_BLANK_SEPARATOR = "|"

OPTION_LETTERS = "ABCDEF"


@dataclass
class Question:
    id: int
    text: str
    type: str
    answer: str
    options: list[str] = field(default_factory=list)
    explanation: str = ""


@dataclass
class HeaderMapping:
    """Semantic field -> literal spreadsheet column header."""
    question: str = ""
    type: str = ""
    answer: str = ""
    option_a: str = ""
    option_b: str = ""
    option_c: str = ""
    option_d: str = ""
    option_e: str = ""
    option_f: str = ""
    explanation: str = ""

    def option_columns(self) -> list[str]:
        return [
            self.option_a, self.option_b, self.option_c,
            self.option_d, self.option_e, self.option_f,
        ]

    def is_complete(self) -> bool:
        return bool(self.question and self.type and self.answer)

    def to_dict(self) -> dict:
        return asdict(self)

    @staticmethod
    def from_dict(data: dict) -> "HeaderMapping":
        return HeaderMapping(**{
            key: str(data.get(key) or "")
            for key in HeaderMapping.__dataclass_fields__
        })


@dataclass
class SheetConfig:
    sheet_name: str
    is_selected: bool = False
    mapping: HeaderMapping = field(default_factory=HeaderMapping)
    use_global_mapping: bool = True
    question_count: int = 0


@dataclass
class MultiSheetConfig:
    sheets: list[SheetConfig] = field(default_factory=list)
    global_mapping: HeaderMapping = field(default_factory=HeaderMapping)
    use_global_mapping: bool = False

    def selected_sheets(self) -> list[SheetConfig]:
        return [s for s in self.sheets if s.is_selected]


@dataclass
class QuestionRange:
    """1-based inclusive index range."""
    start: int
    end: int


@dataclass
class QuizSettings:
    mode: str = "quiz"
    order_mode: str = "sequential"
    limit: int = 0
    judgement_true: str = DEFAULT_JUDGEMENT_TRUE
    judgement_false: str = DEFAULT_JUDGEMENT_FALSE
    question_ranges: list[QuestionRange] = field(default_factory=list)
    use_custom_ranges: bool = False
    fill_blank_separator: str = DEFAULT_FILL_BLANK_SEPARATOR


@dataclass
class ExamConfig:
    question_type: str
    count: int = 0
    score: float = 1
    question_ranges: list[QuestionRange] = field(default_factory=list)
    use_custom_ranges: bool = False

    def __post_init__(self):
        self.count = max(0, self.count)
        self.score = max(0, self.score)

    def to_dict(self) -> dict:
        return {
            "questionType": self.question_type,
            "count": self.count,
            "score": self.score,
            "questionRanges": [{"start": r.start, "end": r.end} for r in self.question_ranges],
            "useCustomRanges": self.use_custom_ranges,
        }

    @staticmethod
    def from_dict(data: dict) -> "ExamConfig":
        return ExamConfig(
            question_type=str(data["questionType"]),
            count=int(data.get("count", 0)),
            score=float(data.get("score", 1)),
            question_ranges=[
                QuestionRange(start=int(r["start"]), end=int(r["end"]))
                for r in data.get("questionRanges") or []
            ],
            use_custom_ranges=bool(data.get("useCustomRanges", False)),
        )


@dataclass
class ExamSettings:
    """Per-type exam configs. Totals are derived, see recompute()."""
    configs: list[ExamConfig] = field(default_factory=list)
    total_questions: int = 0
    total_score: float = 0

    @staticmethod
    def from_configs(configs: list[ExamConfig]) -> "ExamSettings":
        settings = ExamSettings(configs=list(configs))
        settings.recompute()
        return settings

    @staticmethod
    def default() -> "ExamSettings":
        return ExamSettings.from_configs([ExamConfig(question_type=t) for t in QUESTION_TYPES])

    def recompute(self) -> None:
        self.total_questions = sum(c.count for c in self.configs)
        self.total_score = sum(c.count * c.score for c in self.configs)

    def config_for(self, question_type: str) -> Optional[ExamConfig]:
        for config in self.configs:
            if config.question_type == question_type:
                return config
        return None

    def to_dict(self) -> dict:
        return {
            "configs": [c.to_dict() for c in self.configs],
            "totalQuestions": self.total_questions,
            "totalScore": self.total_score,
        }

    @staticmethod
    def from_dict(data: dict) -> "ExamSettings":
        return ExamSettings.from_configs([ExamConfig.from_dict(c) for c in data["configs"]])


@dataclass
class QuestionResult:
    question_id: int
    is_correct: bool
    user_answer: Optional[str]
    correct_answer: str
    question_type: str


@dataclass
class CheckResult:
    is_correct: bool
    correct_answer_text: str
    user_answer_text: str = ""


@dataclass
class QuizStats:
    total: int
    correct: int
    incorrect: int
    accuracy: float
    total_score: float
    max_score: float
    unscored: int = 0
