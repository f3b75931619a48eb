"""Configuration models for page comparisons."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

RGB = tuple[int, int, int]


def _check_color(v: Optional[RGB]) -> Optional[RGB]:
    if v is not None and any(c < 0 or c > 255 for c in v):
        raise ValueError(f"Color channels must be within 0-255, got {v}")
    return v


class ViewportConfig(BaseModel):
    width: int = 1920
    height: int = 1080
    name: str = "desktop"


class RenderConfig(BaseModel):
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)
    navigation_timeout_seconds: float = 30.0
    wait_until: str = "networkidle"
    full_page: bool = True
    headless: bool = True
    user_agent: Optional[str] = None

    # Linked CSS/JS fetching
    resource_timeout_seconds: float = 10.0
    resource_batch_size: int = 10

    @field_validator("resource_batch_size")
    @classmethod
    def positive_batch(cls, v: int) -> int:
        if v < 1:
            raise ValueError("resource_batch_size must be at least 1")
        return v


class PixelDiffConfig(BaseModel):
    threshold: float = 0.2
    chunk_rows: int = 25
    ignore_antialiasing: bool = False
    alpha: float = 0.5
    diff_color: RGB = (255, 0, 0)
    diff_color_alt: Optional[RGB] = (0, 0, 255)
    aa_color: RGB = (255, 255, 0)
    max_dimension: int = 5000
    max_file_size_mb: float = 10.0

    @field_validator("threshold", "alpha")
    @classmethod
    def unit_interval(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"Value must be within [0, 1], got {v}")
        return v

    @field_validator("chunk_rows", "max_dimension")
    @classmethod
    def positive_int(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Value must be at least 1, got {v}")
        return v

    @field_validator("diff_color", "aa_color", "diff_color_alt")
    @classmethod
    def valid_color(cls, v: Optional[RGB]) -> Optional[RGB]:
        return _check_color(v)

    @property
    def max_file_size_bytes(self) -> int:
        return int(self.max_file_size_mb * 1024 * 1024)


class ComparisonConfig(BaseModel):
    render: RenderConfig = Field(default_factory=RenderConfig)
    pixel_diff: PixelDiffConfig = Field(default_factory=PixelDiffConfig)

    # Isolated worker
    worker_timeout_seconds: float = 300.0

    # Artifacts
    output_dir: str = "./uploads/screenshots"
    artifact_url_prefix: str = "/uploads/screenshots"
    retention_count: int = 20

    # Reporting
    report_formats: list[str] = Field(default_factory=lambda: ["json", "html"])

    @classmethod
    def load(cls, path: str | Path) -> "ComparisonConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
