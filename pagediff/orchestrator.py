"""Comparison orchestrator — coordinates capture, resource diffing, pixel comparison and reporting."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Optional

from pagediff.artifacts import (
    HTML_DIFF,
    RESOURCE_DIFFS,
    ArtifactStore,
    ComparisonArtifacts,
)
from pagediff.errors import ComparisonError, RenderFailure
from pagediff.models.capture import PageCapture
from pagediff.models.comparison import ComparisonReport, HtmlSnapshot
from pagediff.models.config import ComparisonConfig
from pagediff.renderer.page_renderer import PageRenderer, Renderer
from pagediff.reporter.reporter import Reporter
from pagediff.resources.differ import diff_html, diff_resources
from pagediff.url_utils import is_http_url
from pagediff.worker.runner import WorkerRunner

logger = logging.getLogger(__name__)


def _usable_screenshot(capture: PageCapture) -> bool:
    if not capture.screenshot_path:
        return False
    path = Path(capture.screenshot_path)
    return path.is_file() and path.stat().st_size > 0


class Orchestrator:
    """Runs one original-vs-upgraded page comparison end to end."""

    def __init__(
        self,
        config: ComparisonConfig,
        renderer: Optional[Renderer] = None,
        worker: Optional[WorkerRunner] = None,
    ):
        self.config = config
        self.renderer = renderer or PageRenderer(config.render)
        self.worker = worker or WorkerRunner(config)
        self.store = ArtifactStore(
            root=Path(config.output_dir),
            url_prefix=config.artifact_url_prefix,
            retention_count=config.retention_count,
        )
        self.reporter = Reporter(config)

    def run(self, original_url: str, upgraded_url: str) -> ComparisonReport:
        """Synchronous entry point."""
        return asyncio.run(self.compare_pages(original_url, upgraded_url))

    async def compare_pages(self, original_url: str, upgraded_url: str) -> ComparisonReport:
        """Capture both URLs, diff their resources and pixels, and build the report."""
        start = time.time()
        created_at = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
        if not original_url or not upgraded_url:
            raise ComparisonError("Both URLs are required for comparison")
        for url in (original_url, upgraded_url):
            if not is_http_url(url):
                raise ComparisonError(
                    f"Invalid URL format: {url}. Provide URLs starting with http:// or https://",
                    url=url,
                )

        artifacts = self.store.allocate()
        self.store.prune(keep=self.config.retention_count - 1, exclude={artifacts.comparison_id})
        logger.info("=== Starting comparison %s ===", artifacts.comparison_id)
        logger.info("Original: %s | Upgraded: %s", original_url, upgraded_url)

        try:
            # Stage 1: Capture
            logger.info("--- Stage 1: Capture ---")
            stage_start = time.time()
            original, upgraded = await self._capture_both(original_url, upgraded_url, artifacts)
            logger.info("--- Stage 1 complete in %.1fs ---", time.time() - stage_start)

            # Stage 2: Resource + HTML diff
            logger.info("--- Stage 2: Resource diff ---")
            resource_diff = diff_resources(original.resources, upgraded.resources)
            html_diff = diff_html(original.html, upgraded.html)
            artifacts.write_json(RESOURCE_DIFFS, resource_diff.model_dump())
            artifacts.write_text(HTML_DIFF, html_diff)
            logger.info(
                "--- Stage 2 complete: %d css, %d js changed; %d images added, %d removed ---",
                len(resource_diff.css), len(resource_diff.javascript),
                len(resource_diff.images.added), len(resource_diff.images.removed),
            )

            # Stage 3: Pixel comparison (isolated worker)
            logger.info("--- Stage 3: Pixel comparison ---")
            stage_start = time.time()
            result = await self.worker.run(
                Path(original.screenshot_path),
                Path(upgraded.screenshot_path),
                artifacts.directory,
                artifacts.url_prefix,
            )
            logger.info("--- Stage 3 complete: %.2f%% mismatch in %.1fs ---",
                        result.mismatch_percentage, time.time() - stage_start)

            # Stage 4: Report
            logger.info("--- Stage 4: Report ---")
            report = ComparisonReport(
                **result.model_dump(),
                comparison_id=artifacts.comparison_id,
                original_url=original_url,
                upgraded_url=upgraded_url,
                resources=resource_diff,
                html=HtmlSnapshot(original=original.html, upgraded=upgraded.html),
                html_diff_url=artifacts.url(HTML_DIFF),
                resource_diffs_url=artifacts.url(RESOURCE_DIFFS),
                created_at=created_at,
                duration_seconds=round(time.time() - start, 2),
            )
            self.reporter.generate_reports(report, artifacts, html_diff=html_diff)
        except ComparisonError as e:
            logger.error("Comparison %s failed: %s", artifacts.comparison_id, e.message)
            raise

        logger.info("=== Comparison complete in %.1fs ===", report.duration_seconds)
        return report

    async def _capture_both(
        self, original_url: str, upgraded_url: str, artifacts: ComparisonArtifacts
    ) -> tuple[PageCapture, PageCapture]:
        tasks = [
            asyncio.create_task(self.renderer.capture(original_url, artifacts.original_screenshot)),
            asyncio.create_task(self.renderer.capture(upgraded_url, artifacts.upgraded_screenshot)),
        ]
        try:
            original, upgraded = await asyncio.gather(*tasks)
        except BaseException:
            # Cancel whichever capture is still running
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        for label, capture in (("original", original), ("upgraded", upgraded)):
            if not _usable_screenshot(capture):
                raise RenderFailure(
                    f"No usable screenshot for the {label} page ({capture.url})",
                    url=capture.url,
                )
        return original, upgraded
