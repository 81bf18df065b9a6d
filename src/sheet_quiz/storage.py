"""Saved settings: the exam configuration kept between runs."""
import json
import logging
import sqlite3
from pathlib import Path

from sheet_quiz.db import get_connection
from sheet_quiz.models import ExamSettings

logger = logging.getLogger(__name__)

EXAM_CONFIG_KEY = "examConfig"


class StorageError(Exception):
    """Raised when an exam configuration file cannot be imported."""


def get_setting(db_path: str, key: str, default: str = None) -> str | None:
    conn = get_connection(db_path)
    try:
        row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    finally:
        conn.close()
    return row["value"] if row else default


def set_setting(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    try:
        conn.execute(
            "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
            (key, value, value),
        )
        conn.commit()
    finally:
        conn.close()


def delete_setting(db_path: str, key: str) -> None:
    conn = get_connection(db_path)
    try:
        conn.execute("DELETE FROM user_settings WHERE key = ?", (key,))
        conn.commit()
    finally:
        conn.close()


def save_exam_config(db_path: str, exam_settings: ExamSettings) -> None:
    exam_settings.recompute()
    try:
        set_setting(db_path, EXAM_CONFIG_KEY, json.dumps(exam_settings.to_dict(), ensure_ascii=False))
    except sqlite3.Error:
        logger.exception("Failed to save exam config")


def load_exam_config(db_path: str) -> ExamSettings | None:
    """The saved exam config, or None when there is none or it can't be read."""
    try:
        saved = get_setting(db_path, EXAM_CONFIG_KEY)
    except sqlite3.Error:
        logger.exception("Failed to load exam config")
        return None
    if not saved:
        return None
    try:
        return ExamSettings.from_dict(json.loads(saved))
    except (ValueError, KeyError, TypeError) as e:
        logger.warning("Ignoring unreadable saved exam config: %s", e)
        return None


def clear_exam_config(db_path: str) -> None:
    try:
        delete_setting(db_path, EXAM_CONFIG_KEY)
    except sqlite3.Error:
        logger.exception("Failed to clear exam config")


def has_exam_config(db_path: str) -> bool:
    try:
        return get_setting(db_path, EXAM_CONFIG_KEY) is not None
    except sqlite3.Error:
        logger.exception("Failed to check exam config")
        return False


def import_exam_config_file(file_path: str) -> ExamSettings:
    """Read an exam config from a .json or .yaml/.yml file."""
    path = Path(file_path)
    suffix = path.suffix.lower()
    try:
        text = path.read_text(encoding="utf-8")
        if suffix == ".json":
            data = json.loads(text)
        elif suffix in (".yaml", ".yml"):
            import yaml
            data = yaml.safe_load(text)
        else:
            raise StorageError(f"{path.name}: exam configs must be .json, .yaml or .yml")
        return ExamSettings.from_dict(data)
    except StorageError:
        raise
    except Exception as e:
        raise StorageError(f"Could not read exam config {path.name}: {e}") from e
