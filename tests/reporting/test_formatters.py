"""Tests for run report formatters."""

import csv
import io
import json
from datetime import datetime, timedelta

from lokatranslator.core.models import PipelineOutcome, UnitState
from lokatranslator.reporting.formatters import save_report, to_csv, to_json, to_markdown
from lokatranslator.reporting.report import RunReport


def _report() -> RunReport:
    started = datetime(2026, 10, 18, 9, 0, 0)
    return RunReport(
        input_file="projects.txt",
        target_lang="748",
        backend="gemini:gemini-2.5-flash",
        concurrency=2,
        units_total=3,
        started_at=started,
        finished_at=started + timedelta(seconds=90),
        outcomes=[
            PipelineOutcome(unit="https://x/A", display_name="app.json", success=True,
                            state=UnitState.done, collected=4, translated=4, from_cache=1,
                            filled=4),
            PipelineOutcome(unit="https://x/B", state=UnitState.failed,
                            error="InteractionError: Row 7 | not found", collected=2),
        ],
    )


class TestRunReport:
    def test_totals(self):
        report = _report()
        assert report.succeeded == 1
        assert report.failed == 1
        assert report.not_started == 1
        assert report.rows_collected == 6
        assert report.rows_filled == 4
        assert report.rows_from_cache == 1
        assert report.duration_seconds == 90.0

    def test_unfinished_duration_is_zero(self):
        assert RunReport().duration_seconds == 0.0


class TestFormatters:
    def test_json(self):
        data = json.loads(to_json(_report()))
        assert data["succeeded"] == 1
        assert data["outcomes"][1]["state"] == "failed"

    def test_markdown(self):
        md = to_markdown(_report())
        assert "# Translation Run Report" in md
        assert "| Not started | 1 |" in md
        assert "[app.json](https://x/A)" in md
        assert "Row 7 \\| not found" in md

    def test_csv(self):
        rows = list(csv.DictReader(io.StringIO(to_csv(_report()))))
        assert len(rows) == 2
        assert rows[0]["display_name"] == "app.json"
        assert rows[0]["error"] == ""
        assert rows[1]["success"] == "False"


class TestSaveReport:
    def test_format_from_extension(self, tmp_path):
        report = _report()
        save_report(report, tmp_path / "out" / "run.md")
        save_report(report, tmp_path / "run.csv")
        save_report(report, tmp_path / "run.txt")

        assert (tmp_path / "out" / "run.md").read_text(encoding="utf-8").startswith("# Translation")
        assert (tmp_path / "run.csv").read_text(encoding="utf-8").startswith("unit,")
        assert json.loads((tmp_path / "run.txt").read_text(encoding="utf-8"))["units_total"] == 3
