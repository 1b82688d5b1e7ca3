import logging

import pytest

import batch_parser
from conftest import SYS_PATTERN, fetch_rows


def test_main_processes_matching_files(log_dir, db_path, capsys):
    (log_dir / "sys.log").write_text("2024-01-01 ERROR code=42\n2024-01-01 INFO ok\n")
    (log_dir / "app.log").write_text("2024-01-05 ERROR code=9\n")
    exit_code = batch_parser.main([str(log_dir), "sys", str(db_path), SYS_PATTERN])
    assert exit_code == 0
    assert fetch_rows(db_path) == [("2024-01-01", "ERROR", "42", "sys.log")]
    assert "Total matches found: 1" in capsys.readouterr().out


def test_main_with_no_matching_files_exits_zero(log_dir, db_path, capsys):
    exit_code = batch_parser.main([str(log_dir), "sys", str(db_path), SYS_PATTERN])
    assert exit_code == 0
    assert "No files matching the filter 'sys'" in capsys.readouterr().out


def test_main_reports_invalid_pattern(log_dir, db_path, capsys):
    exit_code = batch_parser.main([str(log_dir), "sys", str(db_path), "(?P<date>"])
    assert exit_code == 1
    assert capsys.readouterr().err.startswith("Error: Invalid regular expression")
    assert not db_path.exists()


def test_main_reports_missing_directory(tmp_path, db_path, capsys):
    exit_code = batch_parser.main([str(tmp_path / "missing"), "sys", str(db_path), SYS_PATTERN])
    assert exit_code == 1
    assert "Cannot read log directory" in capsys.readouterr().err
    assert not db_path.exists()


def test_main_honours_encoding(log_dir, db_path):
    (log_dir / "sys.log").write_bytes("2024-01-01 ERROR code=42 café\n".encode("latin-1"))
    pattern = r"code=(?P<code>\d+) (?P<word>\w+)"
    assert batch_parser.main([str(log_dir), "sys", str(db_path), pattern]) == 1
    assert batch_parser.main(
        [str(log_dir), "sys", str(db_path), pattern, "--encoding", "latin-1"]
    ) == 0
    assert fetch_rows(db_path) == [("42", "café", "sys.log")]


def test_main_requires_four_positionals(capsys):
    with pytest.raises(SystemExit) as excinfo:
        batch_parser.main(["logs", "sys", "out.db"])
    assert excinfo.value.code == 2


def test_version_flag(capsys):
    with pytest.raises(SystemExit) as excinfo:
        batch_parser.main(["--version"])
    assert excinfo.value.code == 0
    assert capsys.readouterr().out.strip() == "log-to-sqlite 1.0"


def test_log_file_receives_diagnostics(log_dir, db_path, tmp_path):
    (log_dir / "sys.log").write_text("2024-01-01 ERROR code=42\n")
    log_file = tmp_path / "diag" / "run.log"
    exit_code = batch_parser.main(
        [str(log_dir), "sys", str(db_path), SYS_PATTERN, "--log-level", "DEBUG", "--log-file", str(log_file)]
    )
    for handler in logging.getLogger("log_to_sqlite").handlers:
        handler.flush()
    assert exit_code == 0
    content = log_file.read_text()
    assert "Columns derived from pattern: date, level, code, filename" in content
    assert "CREATE TABLE IF NOT EXISTS log_data" in content


def test_main_reports_unknown_encoding(log_dir, db_path, capsys):
    (log_dir / "sys.log").write_text("2024-01-01 ERROR code=42\n")
    exit_code = batch_parser.main(
        [str(log_dir), "sys", str(db_path), SYS_PATTERN, "--encoding", "bogus"]
    )
    assert exit_code == 1
    assert capsys.readouterr().err.startswith("Error: Unknown encoding 'bogus'")
    assert not db_path.exists()
