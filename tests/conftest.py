import pytest
from openpyxl import Workbook

from sheet_quiz.models import FILL_BLANK, MULTIPLE_CHOICE, SINGLE_CHOICE, TRUE_FALSE, Question

HEADERS = ["题目", "题型", "选项A", "选项B", "选项C", "选项D", "答案", "解析"]

ROWS = [
    ["Capital of France?", "单选题", "Paris", "Rome", "Berlin", "Madrid", "A", "Paris is the capital"],
    ["Prime numbers", "多选", "2", "4", "3", "9", "A,C", ""],
    ["The earth is round", "判断", None, None, None, None, "对", ""],
    ["Water is H_O", "填空题", None, None, None, None, "2", ""],
]


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_quiz.db")
    return db_path


@pytest.fixture
def make_workbook(tmp_path):
    """Write an .xlsx with one sheet per {name: [header, *rows]} entry."""
    def _make(sheets, name="bank.xlsx"):
        wb = Workbook()
        wb.remove(wb.active)
        for title, values in sheets.items():
            ws = wb.create_sheet(title)
            for row in values:
                ws.append(row)
        path = tmp_path / name
        wb.save(path)
        return str(path)
    return _make


@pytest.fixture
def sample_workbook(make_workbook):
    return make_workbook({"Sheet1": [HEADERS] + ROWS})


@pytest.fixture
def sample_questions():
    return [
        Question(id=0, text="Capital of France?", type=SINGLE_CHOICE, answer="A",
                 options=["Paris", "Rome", "Berlin", "Madrid"], explanation="Paris is the capital"),
        Question(id=1, text="Prime numbers", type=MULTIPLE_CHOICE, answer="A,C", options=["2", "4", "3", "9"]),
        Question(id=2, text="The earth is round", type=TRUE_FALSE, answer="对"),
        Question(id=3, text="Water is H_O", type=FILL_BLANK, answer="2"),
    ]
