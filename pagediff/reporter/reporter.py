"""Report generation orchestration."""

from __future__ import annotations

import logging

from pagediff.artifacts import REPORT_HTML, REPORT_JSON, ComparisonArtifacts
from pagediff.errors import ArtifactWriteError
from pagediff.models.comparison import ComparisonReport
from pagediff.models.config import ComparisonConfig

from .html_report import generate_html_report
from .json_report import generate_json_report

logger = logging.getLogger(__name__)


class Reporter:
    """Writes a comparison report in every configured format."""

    def __init__(self, config: ComparisonConfig):
        self.config = config

    def generate_reports(
        self,
        report: ComparisonReport,
        artifacts: ComparisonArtifacts,
        html_diff: str = "",
    ) -> dict[str, str]:
        """Generate all configured report formats. Returns format -> file path."""
        generated = {}
        try:
            if "json" in self.config.report_formats:
                path = artifacts.path(REPORT_JSON)
                logger.debug("Generating JSON report...")
                generate_json_report(report, path)
                generated["json"] = str(path)
                logger.info("JSON report: %s", path)

            if "html" in self.config.report_formats:
                path = artifacts.path(REPORT_HTML)
                logger.debug("Generating HTML report...")
                generate_html_report(report, artifacts.directory, path, html_diff=html_diff)
                generated["html"] = str(path)
                logger.info("HTML report: %s", path)
        except OSError as e:
            raise ArtifactWriteError(f"Failed to write report: {e}") from e

        return generated
