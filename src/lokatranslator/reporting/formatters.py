"""Output formatters for run reports."""

from __future__ import annotations

import csv
import io
import json
from pathlib import Path

from lokatranslator.reporting.report import RunReport


def to_json(report: RunReport, indent: int = 2) -> str:
    """Format report as JSON string."""
    return json.dumps(report.to_dict(), indent=indent, default=str, ensure_ascii=False)


def to_markdown(report: RunReport) -> str:
    """Format report as Markdown."""
    lines = [
        "# Translation Run Report",
        "",
        "| Field | Value |",
        "|-------|-------|",
        f"| Work-list | `{report.input_file}` |",
        f"| Target language | {report.target_lang} |",
        f"| Backend | {report.backend} |",
        f"| Concurrency | {report.concurrency} |",
        "",
        "## Statistics",
        "",
        "| Metric | Count |",
        "|--------|-------|",
        f"| Projects | {report.units_total} |",
        f"| Succeeded | {report.succeeded} |",
        f"| Failed | {report.failed} |",
        f"| Not started | {report.not_started} |",
        f"| Empty rows found | {report.rows_collected} |",
        f"| Rows filled | {report.rows_filled} |",
        f"| From cache | {report.rows_from_cache} |",
        f"| Duration | {report.duration_seconds:.1f}s |",
    ]

    if report.outcomes:
        lines.extend([
            "",
            "## Projects",
            "",
            "| Project | Result | Found | Filled | Error |",
            "|---------|--------|-------|--------|-------|",
        ])
        for o in report.outcomes:
            result = "ok" if o.success else "failed"
            error = (o.error or "").replace("|", "\\|").replace("\n", " ")
            lines.append(f"| [{o.label}]({o.unit}) | {result} | {o.collected} | {o.filled} | {error} |")

    return "\n".join(lines) + "\n"


def to_csv(report: RunReport) -> str:
    """Format report as CSV, one row per project."""
    output = io.StringIO()
    fieldnames = ["unit", "display_name", "success", "state", "collected",
                  "translated", "from_cache", "filled", "elapsed_seconds", "error"]
    writer = csv.DictWriter(output, fieldnames=fieldnames, extrasaction="ignore")
    writer.writeheader()
    for o in report.outcomes:
        row = o.to_dict()
        row["error"] = row["error"] or ""
        writer.writerow(row)
    return output.getvalue()


def save_report(report: RunReport, path: str | Path) -> None:
    """Save report to file, auto-detecting format from extension."""
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        content = to_json(report)
    elif suffix in (".md", ".markdown"):
        content = to_markdown(report)
    elif suffix == ".csv":
        content = to_csv(report)
    else:
        content = to_json(report)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
