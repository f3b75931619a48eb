"""Artifact store — per-comparison output directories under a shared root.

Each comparison writes into ``<root>/<comparison_id>/`` so concurrent runs
never overwrite each other's screenshots or diffs. Old comparison directories
are pruned by count. Cleanup is best effort: failures are logged, never raised.
"""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Any

from pagediff.errors import ArtifactWriteError
from pagediff.url_utils import new_comparison_id

logger = logging.getLogger(__name__)

ORIGINAL_SCREENSHOT = "original.png"
UPGRADED_SCREENSHOT = "upgraded.png"
DIFF_IMAGE = "diff.png"
HTML_DIFF = "diff.html"
RESOURCE_DIFFS = "resource-diffs.json"
REPORT_JSON = "report.json"
REPORT_HTML = "report.html"


class ComparisonArtifacts:
    """Paths and URLs for one comparison's files."""

    def __init__(self, comparison_id: str, directory: Path, url_prefix: str):
        self.comparison_id = comparison_id
        self.directory = directory
        self.url_prefix = f"{url_prefix.rstrip('/')}/{comparison_id}"

    def path(self, filename: str) -> Path:
        return self.directory / filename

    def url(self, filename: str) -> str:
        return f"{self.url_prefix}/{filename}"

    @property
    def original_screenshot(self) -> Path:
        return self.path(ORIGINAL_SCREENSHOT)

    @property
    def upgraded_screenshot(self) -> Path:
        return self.path(UPGRADED_SCREENSHOT)

    def clear_stale(self) -> int:
        """Remove files left in this directory by an earlier run. Returns the count removed."""
        removed = 0
        try:
            entries = list(self.directory.iterdir())
        except OSError as e:
            logger.warning("Error clearing old files in %s: %s", self.directory, e)
            return 0
        for entry in entries:
            try:
                if entry.is_dir():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()
                removed += 1
            except OSError as e:
                logger.warning("Could not remove stale artifact %s: %s", entry, e)
        return removed

    def write_text(self, filename: str, content: str) -> Path:
        """Write a text artifact; failures are fatal."""
        path = self.path(filename)
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(content)
        except OSError as e:
            raise ArtifactWriteError(f"Failed to write {path}: {e}", path=str(path)) from e
        return path

    def write_json(self, filename: str, data: Any) -> Path:
        return self.write_text(filename, json.dumps(data, indent=2, default=str))


class ArtifactStore:
    """Allocates comparison directories and applies the retention policy."""

    def __init__(self, root: Path, url_prefix: str, retention_count: int = 20):
        self.root = root
        self.url_prefix = url_prefix
        self.retention_count = retention_count

    def allocate(self, comparison_id: str | None = None) -> ComparisonArtifacts:
        """Create (or reuse and clear) the directory for one comparison."""
        comparison_id = comparison_id or new_comparison_id()
        directory = self.root / comparison_id
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArtifactWriteError(
                f"Failed to create artifact directory {directory}: {e}", path=str(directory)
            ) from e
        artifacts = ComparisonArtifacts(comparison_id, directory, self.url_prefix)
        removed = artifacts.clear_stale()
        if removed:
            logger.debug("Cleared %d stale artifacts from %s", removed, directory)
        return artifacts

    def list_comparisons(self) -> list[Path]:
        """Comparison directories, newest first."""
        if not self.root.exists():
            return []
        dirs = [p for p in self.root.iterdir() if p.is_dir()]
        return sorted(dirs, key=lambda p: (p.stat().st_mtime, p.name), reverse=True)

    def prune(self, keep: int | None = None, exclude: set[str] | None = None) -> list[str]:
        """Delete comparison directories beyond the newest ``keep``. Returns removed IDs."""
        keep = max(self.retention_count if keep is None else keep, 0)
        exclude = exclude or set()
        try:
            candidates = [p for p in self.list_comparisons() if p.name not in exclude]
        except OSError as e:
            logger.warning("Could not list comparisons in %s: %s", self.root, e)
            return []

        removed = []
        for directory in candidates[keep:]:
            try:
                shutil.rmtree(directory)
                removed.append(directory.name)
            except OSError as e:
                logger.warning("Could not remove old comparison %s: %s", directory, e)
        if removed:
            logger.info("Pruned %d old comparisons", len(removed))
        return removed
