"""
log_parser.py
----------------

This module contains the functions used to turn a directory of log files
into rows of an SQLite table. The user supplies a regular expression with
named capture groups; every line of every selected file is searched with
that expression and each match becomes one row in the ``log_data`` table.

The high level rules implemented here:

* The column set is derived from the pattern: one ``TEXT`` column per named
  group, in the order the groups are declared, followed by a ``filename``
  column holding the base name of the source file.
* Only direct children of the log directory are considered, and only those
  whose name contains the filter substring (plain, case-sensitive
  containment, not a glob).
* The table is created with ``CREATE TABLE IF NOT EXISTS`` and is never
  altered afterwards. An existing table with a different shape makes the
  inserts fail, not the schema step.
* Each file is processed inside its own transaction. Either all rows from a
  file are committed or none are.
* The run stops at the first error. Files committed before the failure keep
  their rows.

These functions are used by the command line entry point in
:mod:`batch_parser` and by the Streamlit front-end in :mod:`ui_app`.
"""

from __future__ import annotations

import codecs
import os
import re
import sqlite3
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Pattern, Sequence, Tuple

from logging_config import get_logger

logger = get_logger("parser")

TABLE_NAME = "log_data"
FILENAME_COLUMN = "filename"

# Seconds sqlite3 waits on a locked database before raising.
DB_TIMEOUT_SECONDS = 30

DEFAULT_ENCODING = "utf-8"

# How often (in lines) process_file reports progress to its callback.
PROGRESS_EVERY_LINES = 10_000

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class LogParserError(Exception):
    """Base class for every error that aborts a run."""


class PatternError(LogParserError):
    """The user-supplied regular expression could not be compiled."""


class DirectoryError(LogParserError):
    """The log directory is missing or cannot be listed."""


class SchemaError(LogParserError):
    """The database could not be opened or the table could not be created."""


class InsertError(LogParserError):
    """The database rejected a row."""


class LogReadError(LogParserError, IOError):
    """A log file could not be read to the end."""


class EncodingError(LogParserError):
    """The requested text encoding is unknown."""


@dataclass
class FileResult:
    path: str
    matches: int


@dataclass
class RunSummary:
    """Outcome of a completed run.

    ``files`` lists every file that was processed, in processing order, with
    its match count. ``total_matches`` is the sum of those counts and equals
    the number of rows inserted during the run.
    """

    columns: List[str]
    files: List[FileResult] = field(default_factory=list)

    @property
    def total_matches(self) -> int:
        return sum(result.matches for result in self.files)


def compile_pattern(pattern_text: str) -> Pattern[str]:
    """Compile ``pattern_text`` or raise :class:`PatternError`."""
    try:
        return re.compile(pattern_text)
    except re.error as exc:
        raise PatternError(f"Invalid regular expression {pattern_text!r}: {exc}") from exc


def check_encoding(encoding: str) -> None:
    """Raise :class:`EncodingError` unless ``encoding`` is a known codec."""
    try:
        codecs.lookup(encoding)
    except LookupError as exc:
        raise EncodingError(f"Unknown encoding {encoding!r}: {exc}") from exc


def column_names(pattern: Pattern[str]) -> List[str]:
    """Return the column set for a compiled pattern.

    The named groups are returned in declaration order (by group number),
    followed by the ``filename`` column. If a name occurs more than once only
    its first occurrence is kept. A pattern without named groups yields just
    ``["filename"]``.

    Parameters
    ----------
    pattern: Pattern[str]
        A pattern returned by :func:`compile_pattern`.

    Returns
    -------
    List[str]
        Ordered, distinct column names ending with ``filename``.
    """
    names: List[str] = []
    for name, _ in sorted(pattern.groupindex.items(), key=lambda item: item[1]):
        if name not in names:
            names.append(name)
    names.append(FILENAME_COLUMN)
    return names


def validate_column_names(columns: Sequence[str]) -> None:
    """Reject column names that cannot be used safely as SQL identifiers.

    Raises
    ------
    SchemaError
        If a name is not identifier-like, or if a named group is called
        ``filename`` and would collide with the trailing column.
    """
    group_columns = list(columns[:-1])
    if FILENAME_COLUMN in group_columns:
        raise SchemaError(
            f"Named group {FILENAME_COLUMN!r} collides with the column holding the source file name"
        )
    for name in columns:
        if not _IDENTIFIER_RE.match(name):
            raise SchemaError(f"Named group {name!r} is not a valid column name")


def _quote(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def create_table_sql(columns: Sequence[str]) -> str:
    column_defs = ", ".join(f"{_quote(name)} TEXT" for name in columns)
    return f"CREATE TABLE IF NOT EXISTS {TABLE_NAME} ({column_defs})"


def insert_sql(columns: Sequence[str]) -> str:
    placeholders = ", ".join("?" for _ in columns)
    column_list = ", ".join(_quote(name) for name in columns)
    return f"INSERT INTO {TABLE_NAME} ({column_list}) VALUES ({placeholders})"


def find_matching_files(directory: str, file_filter: str) -> List[str]:
    """Return the files in ``directory`` whose name contains ``file_filter``.

    Subdirectories are not traversed. The order of the returned paths is the
    order in which the operating system enumerates the directory; it is not
    sorted.

    Parameters
    ----------
    directory: str
        Path of the directory to scan.
    file_filter: str
        Substring a file name must contain. The empty string selects every
        file.

    Returns
    -------
    List[str]
        Paths (``directory`` joined with the entry name) of the selected
        files. Empty if nothing matches.

    Raises
    ------
    DirectoryError
        If the directory does not exist, is not a directory or cannot be
        read.
    """
    matching: List[str] = []
    try:
        with os.scandir(directory) as entries:
            for entry in entries:
                if not entry.is_file():
                    continue
                if file_filter in entry.name:
                    matching.append(entry.path)
    except OSError as exc:
        raise DirectoryError(f"Cannot read log directory {directory!r}: {exc}") from exc
    logger.debug("Selected %d file(s) in %s with filter %r", len(matching), directory, file_filter)
    return matching


def open_database(db_path: str) -> sqlite3.Connection:
    """Open (and create if absent) the SQLite database at ``db_path``."""
    try:
        return sqlite3.connect(db_path, timeout=DB_TIMEOUT_SECONDS)
    except sqlite3.Error as exc:
        raise SchemaError(f"Cannot open database {db_path!r}: {exc}") from exc


def ensure_schema(conn: sqlite3.Connection, columns: Sequence[str]) -> None:
    """Create the ``log_data`` table if it does not exist yet.

    The statement is idempotent. An existing table is left untouched whatever
    its columns are; a mismatch only shows up when rows are inserted.
    """
    statement = create_table_sql(columns)
    logger.debug("Ensuring schema: %s", statement)
    try:
        conn.execute(statement)
        conn.commit()
    except sqlite3.Error as exc:
        raise SchemaError(f"Cannot create table {TABLE_NAME!r}: {exc}") from exc


def build_row(match: "re.Match[str]", columns: Sequence[str], filename: str) -> Tuple[str, ...]:
    """Build the row for one matched line.

    Groups that did not take part in the match are stored as empty strings.
    """
    values = [match.group(name) or "" for name in columns if name != FILENAME_COLUMN]
    values.append(filename)
    return tuple(values)


def process_lines(
    lines: Iterable[str],
    conn: sqlite3.Connection,
    pattern: Pattern[str],
    columns: Sequence[str],
    filename: str,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> int:
    """Search every line and insert one row per match.

    Rows are inserted immediately on ``conn``; committing is left to the
    caller so that a whole file forms one transaction.

    Parameters
    ----------
    lines: Iterable[str]
        Text lines, with or without their line terminator.
    conn: sqlite3.Connection
        Open connection with the ``log_data`` table in place.
    pattern: Pattern[str]
        The compiled pattern. A line matches if the pattern is found
        anywhere in it.
    columns: Sequence[str]
        The column set from :func:`column_names`.
    filename: str
        Base name stored in the ``filename`` column.
    progress_callback: callable, optional
        Called with ``(lines_processed, matches)`` every
        ``PROGRESS_EVERY_LINES`` lines.

    Returns
    -------
    int
        The number of lines that matched.

    Raises
    ------
    InsertError
        If the database rejects a row.
    """
    statement = insert_sql(columns)
    matches = 0
    lines_processed = 0
    for raw in lines:
        lines_processed += 1
        line = raw[:-1] if raw.endswith("\n") else raw
        if line.endswith("\r"):
            line = line[:-1]
        match = pattern.search(line)
        if match is not None:
            row = build_row(match, columns, filename)
            try:
                conn.execute(statement, row)
            except sqlite3.Error as exc:
                raise InsertError(
                    f"Cannot insert row from {filename!r} into {TABLE_NAME!r}: {exc}"
                ) from exc
            matches += 1
        if progress_callback and lines_processed % PROGRESS_EVERY_LINES == 0:
            progress_callback(lines_processed, matches)
    if progress_callback:
        progress_callback(lines_processed, matches)
    return matches


def process_file(
    path: str,
    conn: sqlite3.Connection,
    pattern: Pattern[str],
    columns: Sequence[str],
    encoding: str = DEFAULT_ENCODING,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> int:
    """Process a single log file inside one transaction.

    The file is read line by line and every match is inserted right away.
    The transaction is committed after the last line. If reading or
    inserting fails, everything inserted for this file is rolled back and
    the error is raised.

    Returns
    -------
    int
        The number of matching lines, which equals the rows committed.

    Raises
    ------
    LogReadError
        If the file cannot be opened or decoded.
    InsertError
        If the database rejects a row or the commit fails.
    EncodingError
        If ``encoding`` is not a known codec.
    """
    filename = os.path.basename(path)
    try:
        # Split on \n only; a lone \r stays part of the line
        with open(path, "r", encoding=encoding, newline="\n") as fh:
            matches = process_lines(fh, conn, pattern, columns, filename, progress_callback)
        conn.commit()
    except (OSError, UnicodeDecodeError) as exc:
        conn.rollback()
        raise LogReadError(f"Cannot read log file {path!r}: {exc}") from exc
    except sqlite3.Error as exc:
        conn.rollback()
        raise InsertError(f"Cannot commit rows from {path!r}: {exc}") from exc
    except LookupError as exc:
        conn.rollback()
        raise EncodingError(f"Unknown encoding {encoding!r}: {exc}") from exc
    except BaseException:
        conn.rollback()
        raise
    logger.debug("Committed %d row(s) from %s", matches, path)
    return matches


def run(
    log_dir: str,
    file_filter: str,
    db_path: str,
    pattern_text: str,
    encoding: str = DEFAULT_ENCODING,
    echo: Callable[[str], None] = print,
    file_callback: Optional[Callable[[int, int, str, int], None]] = None,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> RunSummary:
    """Run the whole ingestion: pattern, files, schema, then each file in turn.

    The pattern is compiled and the directory listed before the database is
    touched, so an invalid pattern or a missing directory leaves no database
    behind. Files are processed sequentially and the run stops at the first
    error; rows committed for earlier files remain in the database.

    Parameters
    ----------
    log_dir: str
        Directory to scan (non-recursive).
    file_filter: str
        Substring a file name must contain.
    db_path: str
        SQLite database file, created if absent.
    pattern_text: str
        Regular expression with named groups.
    encoding: str, optional
        Text encoding of the log files.
    echo: callable, optional
        Receives the human readable progress lines. Defaults to ``print``.
    file_callback: callable, optional
        Called after each file with ``(index, total, path, matches)``,
        ``index`` starting at 1.
    progress_callback: callable, optional
        Forwarded to :func:`process_file` for line level progress.

    Returns
    -------
    RunSummary
        Per-file match counts and the column set used.
    """
    pattern = compile_pattern(pattern_text)
    columns = column_names(pattern)
    validate_column_names(columns)
    check_encoding(encoding)
    logger.info("Columns derived from pattern: %s", ", ".join(columns))

    log_files = find_matching_files(log_dir, file_filter)

    summary = RunSummary(columns=columns)
    conn = open_database(db_path)
    try:
        ensure_schema(conn, columns)
        echo("Database table verified.")

        if not log_files:
            echo(f"No files matching the filter '{file_filter}' were found in '{log_dir}'.")
            return summary
        echo(f"Found {len(log_files)} matching files.")

        total = len(log_files)
        for index, file_path in enumerate(log_files, start=1):
            echo(f"Processing file {index} of {total}: {file_path}")
            try:
                matches = process_file(
                    file_path,
                    conn,
                    pattern,
                    columns,
                    encoding=encoding,
                    progress_callback=progress_callback,
                )
            except LogParserError:
                logger.error(
                    "Aborting run at file %d of %d (%s); %d file(s) already committed",
                    index,
                    total,
                    file_path,
                    len(summary.files),
                )
                raise
            summary.files.append(FileResult(path=file_path, matches=matches))
            echo(f"Processed file {file_path}, Matches: {matches}")
            if file_callback:
                file_callback(index, total, file_path, matches)

        echo(f"Log processing completed. Total matches found: {summary.total_matches}")
    finally:
        conn.close()
    return summary
