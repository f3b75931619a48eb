"""Pytest configuration and shared fixtures."""

from pathlib import Path

import numpy as np
import pytest

from pagediff.imaging.bitmap import Bitmap, save_png
from pagediff.models.capture import ImageResource, ResourceManifest, TextResource
from pagediff.models.comparison import ComparisonReport, ComparisonResult, ResourceDiff
from pagediff.models.config import ComparisonConfig, PixelDiffConfig, RenderConfig

WHITE = (255, 255, 255, 255)
BLACK = (0, 0, 0, 255)


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def pixel_config() -> PixelDiffConfig:
    """Create a test pixel diff configuration."""
    return PixelDiffConfig(threshold=0.1, chunk_rows=4)


@pytest.fixture
def comparison_config(tmp_path: Path, pixel_config: PixelDiffConfig) -> ComparisonConfig:
    """Create a comparison configuration writing into a temp directory."""
    return ComparisonConfig(
        render=RenderConfig(resource_timeout_seconds=1.0, resource_batch_size=2),
        pixel_diff=pixel_config,
        worker_timeout_seconds=60.0,
        output_dir=str(tmp_path / "screenshots"),
        artifact_url_prefix="/uploads/screenshots",
        retention_count=5,
    )


# ============================================================================
# Image Fixtures
# ============================================================================


@pytest.fixture
def write_png(tmp_path: Path):
    """Factory writing a solid-colour PNG and returning its path."""

    def _write(name: str, width: int, height: int, rgba=WHITE, directory: Path | None = None) -> Path:
        path = (directory or tmp_path) / name
        save_png(Bitmap.filled(width, height, rgba), path)
        return path

    return _write


@pytest.fixture
def patterned_bitmap() -> Bitmap:
    """Deterministic bitmap with flat regions, hard edges and noise."""
    rng = np.random.default_rng(7)
    pixels = np.full((37, 29, 4), 255, dtype=np.uint8)
    pixels[5:20, 3:15, :3] = (30, 60, 200)
    pixels[22:30, :, :3] = (0, 0, 0)
    pixels[:, 20] = (128, 128, 128, 255)
    noise = rng.integers(0, 256, size=(6, 6, 4), dtype=np.uint8)
    pixels[30:36, 22:28] = noise
    return Bitmap(pixels)


# ============================================================================
# Model Fixtures
# ============================================================================


@pytest.fixture
def original_manifest() -> ResourceManifest:
    return ResourceManifest(
        css=[
            TextResource(url="https://old.example.com/css/site.css", content="body {\n  color: black;\n}\n"),
            TextResource(url="https://old.example.com/css/print.css", content="@media print {}\n"),
        ],
        javascript=[TextResource(url="https://old.example.com/js/app.js", content="console.log('v1');\n")],
        images=[
            ImageResource(url="https://old.example.com/img/logo.png"),
            ImageResource(url="https://old.example.com/img/banner.jpg"),
        ],
    )


@pytest.fixture
def comparison_result() -> ComparisonResult:
    return ComparisonResult(
        mismatch_percentage=12.5,
        diff_image_url="/uploads/screenshots/cmp_1/diff.png",
        original_image_url="/uploads/screenshots/cmp_1/original.png",
        upgraded_image_url="/uploads/screenshots/cmp_1/upgraded.png",
        mismatched_pixels=50,
        width=20,
        height=20,
    )


@pytest.fixture
def comparison_report(comparison_result: ComparisonResult) -> ComparisonReport:
    return ComparisonReport(
        **comparison_result.model_dump(),
        comparison_id="cmp_1",
        original_url="https://old.example.com/",
        upgraded_url="https://new.example.com/",
        resources=ResourceDiff(),
        html_diff_url="/uploads/screenshots/cmp_1/diff.html",
        resource_diffs_url="/uploads/screenshots/cmp_1/resource-diffs.json",
        created_at="2024-01-01T00:00:00Z",
        duration_seconds=3.2,
    )
