"""
ui_app.py
----------

This Streamlit application provides a simple web interface to the log
parser defined in :mod:`log_parser`. It takes the same inputs as the
command line tool (log directory, file name filter, database path and a
regular expression with named groups), runs the ingestion with a progress
bar and reports how many lines matched in each file.

To run the application locally, install the required dependencies and
execute ``streamlit run ui_app.py`` from the command line. The app will
start a local web server that can be accessed via a browser.

The directory and database paths are read on the server, so this is only
useful when the app runs on the machine that holds the log files.
"""

import os
import tempfile
from typing import List

import pandas as pd
import streamlit as st

import log_parser
from logging_config import get_logger, setup_logging

logger = get_logger("ui")

# Default database location offered in the form.
DB_PATH = os.path.join(tempfile.gettempdir(), "log_data.db")

EXAMPLE_PATTERN = r"^(?P<date>\d{4}-\d{2}-\d{2}) (?P<level>[A-Z]+) code=(?P<code>\d+)"


def summary_frame(summary: log_parser.RunSummary) -> pd.DataFrame:
    """Return the per-file match counts of a run as a DataFrame.

    The frame has the columns ``file``, ``path`` and ``matches`` in
    processing order.
    """
    return pd.DataFrame(
        [(os.path.basename(r.path), r.path, r.matches) for r in summary.files],
        columns=["file", "path", "matches"],
    )


def main() -> None:
    """Run the Streamlit application."""
    st.set_page_config(page_title="Log to SQLite", layout="wide")
    st.title("Log Files to SQLite")
    setup_logging("INFO")

    with st.form(key="run_form"):
        log_dir = st.text_input("Log directory on the server", "")
        file_filter = st.text_input("File name must contain", "")
        db_path = st.text_input("SQLite database path", DB_PATH)
        pattern_text = st.text_input("Regular expression with named groups", EXAMPLE_PATTERN)
        encoding = st.text_input("File encoding", log_parser.DEFAULT_ENCODING)
        submitted = st.form_submit_button("Run")

    if not submitted:
        return
    if not log_dir or not db_path or not pattern_text:
        st.warning("Please enter a log directory, a database path and a regular expression.")
        return

    # Messages from log_parser.run are collected and shown below the bar.
    messages: List[str] = []
    progress_bar = st.progress(0.0)
    status = st.empty()
    line_status = st.empty()

    def echo(message: str) -> None:
        messages.append(message)
        status.text(message)

    def on_lines(lines_processed: int, matches: int) -> None:
        line_status.caption(f"Read {lines_processed:,} lines, {matches:,} matches in the current file...")

    def on_file_done(index: int, total: int, path: str, matches: int) -> None:
        progress_bar.progress(index / total)

    try:
        summary = log_parser.run(
            log_dir,
            file_filter,
            db_path,
            pattern_text,
            encoding=encoding,
            echo=echo,
            file_callback=on_file_done,
            progress_callback=on_lines,
        )
    except log_parser.LogParserError as exc:
        logger.error("Run from the web interface failed: %s", exc)
        with st.expander("Progress", expanded=False):
            st.text("\n".join(messages))
        st.error(f"Run aborted: {exc}")
        return

    progress_bar.progress(1.0)
    st.write("Columns: " + ", ".join(f"`{name}`" for name in summary.columns))
    if not summary.files:
        st.info(messages[-1] if messages else "No matching files were found.")
        return
    st.dataframe(summary_frame(summary), use_container_width=True)
    st.success(f"Inserted {summary.total_matches} records from {len(summary.files)} files.")


if __name__ == "__main__":
    main()
