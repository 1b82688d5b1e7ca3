"""
batch_parser.py
-----------------

Command line entry point: parse every matching log file in a directory
into the shared SQLite database using the ``log_parser`` module.

Usage:
  python batch_parser.py LOG_DIR FILE_FILTER DB_PATH REGEX

Arguments:
  LOG_DIR      Directory containing the log files. Subdirectories are not
               scanned.
  FILE_FILTER  Substring a file name must contain to be processed.
  DB_PATH      Path to the SQLite database file. Created if it does not
               exist.
  REGEX        Regular expression with named groups. Each named group
               becomes a TEXT column of the ``log_data`` table, followed
               by a ``filename`` column.

Options:
  --encoding   Text encoding of the log files (default: utf-8).
  --log-level  Level of the diagnostic log on stderr (default: WARNING).
  --log-file   Also write diagnostics to this rotating log file.
  --version    Print the version and exit.

Example:
  python batch_parser.py /var/log/app sys out.db \\
      '^(?P<date>\\d{4}-\\d{2}-\\d{2}) (?P<level>[A-Z]+) code=(?P<code>\\d+)'

The run stops at the first error and exits with status 1. Files that were
fully processed before the error keep their rows in the database. A
directory without matching files is not an error.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import log_parser
from logging_config import get_logger, setup_logging

__version__ = "1.0"

logger = get_logger("cli")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="log-to-sqlite",
        description=(
            "Parses log files in a directory, matches lines with a regex, "
            "and inserts results into an SQLite database"
        ),
    )
    parser.add_argument("log_dir", help="The directory containing log files")
    parser.add_argument("file_filter", help="Substring to filter log file names")
    parser.add_argument("db_path", help="Path to the SQLite database file")
    parser.add_argument("regex", help="Regular expression with named groups")
    parser.add_argument(
        "--encoding",
        default=log_parser.DEFAULT_ENCODING,
        help=f"Text encoding of the log files (default: {log_parser.DEFAULT_ENCODING})",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Level of diagnostic messages written to stderr (default: WARNING)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Optional file receiving the diagnostic log as well",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.log_level, args.log_file)

    try:
        log_parser.run(
            args.log_dir,
            args.file_filter,
            args.db_path,
            args.regex,
            encoding=args.encoding,
        )
    except log_parser.LogParserError as exc:
        logger.debug("Run failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Interrupted. Files completed so far remain committed.", file=sys.stderr)
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
