"""Comparison result and report data structures.

Fields serialize under the camelCase names the web layer consumes
(``misMatchPercentage``, ``diffImageUrl``...); dump with ``by_alias=True``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TextResourceDiff(BaseModel):
    url: str
    diff: str  # unified diff text


class ImageDiff(BaseModel):
    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)


class ResourceDiff(BaseModel):
    css: list[TextResourceDiff] = Field(default_factory=list)
    javascript: list[TextResourceDiff] = Field(default_factory=list)
    images: ImageDiff = Field(default_factory=ImageDiff)

    @property
    def is_empty(self) -> bool:
        return not (self.css or self.javascript or self.images.added or self.images.removed)


class ComparisonResult(BaseModel):
    """Output of the isolated comparison worker."""
    model_config = ConfigDict(populate_by_name=True)

    mismatch_percentage: float = Field(alias="misMatchPercentage", ge=0.0, le=100.0)
    diff_image_url: str = Field(alias="diffImageUrl")
    original_image_url: str = Field(alias="originalImageUrl")
    upgraded_image_url: str = Field(alias="upgradedImageUrl")
    mismatched_pixels: int = Field(default=0, alias="mismatchedPixels")
    width: int = 0
    height: int = 0


class HtmlSnapshot(BaseModel):
    original: str = ""
    upgraded: str = ""


class ComparisonReport(ComparisonResult):
    """Top-level report merging the pixel comparison, resource diffs and raw HTML."""

    comparison_id: str = Field(alias="comparisonId")
    original_url: str = Field(alias="originalUrl")
    upgraded_url: str = Field(alias="upgradedUrl")
    resources: ResourceDiff = Field(default_factory=ResourceDiff)
    html: HtmlSnapshot = Field(default_factory=HtmlSnapshot)
    html_diff_url: str = Field(default="", alias="htmlDiffUrl")
    resource_diffs_url: str = Field(default="", alias="resourceDiffsUrl")
    created_at: str = Field(default="", alias="createdAt")
    duration_seconds: float = Field(default=0.0, alias="durationSeconds")
