import log_parser
import ui_app
from conftest import SYS_PATTERN


def test_summary_frame_lists_files_in_processing_order(log_dir, db_path):
    (log_dir / "a_sys.log").write_text("2024-01-01 ERROR code=1\n2024-01-02 ERROR code=2\n")
    (log_dir / "b_sys.log").write_text("no match\n")
    summary = log_parser.run(str(log_dir), "sys", str(db_path), SYS_PATTERN, echo=lambda m: None)
    frame = ui_app.summary_frame(summary)
    assert list(frame.columns) == ["file", "path", "matches"]
    assert sorted(zip(frame["file"], frame["matches"])) == [("a_sys.log", 2), ("b_sys.log", 0)]
    assert frame["matches"].sum() == summary.total_matches


def test_summary_frame_of_empty_run():
    frame = ui_app.summary_frame(log_parser.RunSummary(columns=["filename"]))
    assert frame.empty
    assert list(frame.columns) == ["file", "path", "matches"]
