"""Page capture data structures produced by the renderer."""

from __future__ import annotations

from pydantic import BaseModel, Field


class TextResource(BaseModel):
    url: str
    content: str


class ImageResource(BaseModel):
    url: str


class ResourceManifest(BaseModel):
    css: list[TextResource] = Field(default_factory=list)
    javascript: list[TextResource] = Field(default_factory=list)
    images: list[ImageResource] = Field(default_factory=list)


class PageCapture(BaseModel):
    url: str
    html: str = ""
    resources: ResourceManifest = Field(default_factory=ResourceManifest)
    screenshot_path: str = ""
