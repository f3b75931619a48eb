"""JSON report output."""

from __future__ import annotations

import json
from pathlib import Path

from pagediff.models.comparison import ComparisonReport


def report_to_dict(report: ComparisonReport) -> dict:
    """Report in the camelCase shape the web layer consumes."""
    return report.model_dump(by_alias=True)


def generate_json_report(report: ComparisonReport, output_path: Path) -> None:
    """Write a machine-readable JSON report."""
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(report_to_dict(report), f, indent=2, default=str)
