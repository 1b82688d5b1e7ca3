import logging
import sqlite3

import pytest

from logging_config import ROOT_LOGGER_NAME

SYS_PATTERN = r"^(?P<date>\d{4}-\d{2}-\d{2}) (?P<level>[A-Z]+) code=(?P<code>\d+)"


@pytest.fixture
def log_dir(tmp_path):
    directory = tmp_path / "logs"
    directory.mkdir()
    return directory


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "out.db"


def fetch_rows(db_path, order_by="rowid"):
    conn = sqlite3.connect(str(db_path))
    try:
        return conn.execute(f"SELECT * FROM log_data ORDER BY {order_by}").fetchall()
    finally:
        conn.close()


def table_columns(db_path):
    conn = sqlite3.connect(str(db_path))
    try:
        return [row[1] for row in conn.execute("PRAGMA table_info(log_data)")]
    finally:
        conn.close()


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        handler.close()
    root.handlers.clear()
