"""Resource differ — compares linked CSS, JavaScript and images between two captures."""

from __future__ import annotations

import difflib
import logging

from pagediff.models.capture import ImageResource, ResourceManifest, TextResource
from pagediff.models.comparison import ImageDiff, ResourceDiff, TextResourceDiff
from pagediff.url_utils import url_path_key

logger = logging.getLogger(__name__)


NO_NEWLINE_MARKER = "\\ No newline at end of file"


def _split_lines(text: str) -> list[str]:
    """Split on "\\n" only, keeping each line's terminator (including any "\\r")."""
    lines = text.split("\n")
    last = lines.pop()
    result = [line + "\n" for line in lines]
    if last:
        result.append(last)
    return result


def unified_patch(name: str, original: str, upgraded: str) -> str:
    """Return a line-based unified diff of two texts, or "" when they match.

    Line endings are part of each line, so CRLF/LF changes and a missing
    final newline show up in the patch.
    """
    if original == upgraded:
        return ""
    out = []
    for line in difflib.unified_diff(
        _split_lines(original),
        _split_lines(upgraded),
        fromfile=name,
        tofile=name,
        fromfiledate="Original",
        tofiledate="Upgraded",
    ):
        out.append(line)
        if not line.endswith("\n"):
            out.append(f"\n{NO_NEWLINE_MARKER}\n")
    return "".join(out)


def diff_html(original_html: str, upgraded_html: str) -> str:
    """Unified diff of the two serialized HTML documents."""
    return unified_patch("comparison", original_html, upgraded_html)


def _diff_text_resources(
    original: list[TextResource], upgraded: list[TextResource]
) -> list[TextResourceDiff]:
    # Only content changes of URLs present on both sides are reported
    upgraded_by_url = {r.url: r for r in upgraded}
    diffs = []
    for resource in original:
        counterpart = upgraded_by_url.get(resource.url)
        if counterpart is None:
            continue
        patch = unified_patch(resource.url, resource.content, counterpart.content)
        if patch:
            diffs.append(TextResourceDiff(url=resource.url, diff=patch))
    return diffs


def _images_by_path(images: list[ImageResource]) -> dict[str, str]:
    return {url_path_key(img.url): img.url for img in images}


def diff_images(original: list[ImageResource], upgraded: list[ImageResource]) -> ImageDiff:
    """Find images added or removed, matched by URL path rather than full URL."""
    original_paths = _images_by_path(original)
    upgraded_paths = _images_by_path(upgraded)
    return ImageDiff(
        added=[url for path, url in upgraded_paths.items() if path not in original_paths],
        removed=[url for path, url in original_paths.items() if path not in upgraded_paths],
    )


def diff_resources(original: ResourceManifest, upgraded: ResourceManifest) -> ResourceDiff:
    """Compute CSS/JS content diffs and image added/removed sets."""
    result = ResourceDiff(
        css=_diff_text_resources(original.css, upgraded.css),
        javascript=_diff_text_resources(original.javascript, upgraded.javascript),
        images=diff_images(original.images, upgraded.images),
    )
    logger.debug(
        "Resource diff: %d css, %d js changed; %d images added, %d removed",
        len(result.css), len(result.javascript),
        len(result.images.added), len(result.images.removed),
    )
    return result
