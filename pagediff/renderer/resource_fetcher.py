"""Resource fetcher — discovers linked CSS/JS/images on a page and fetches text bodies."""

from __future__ import annotations

import asyncio
import logging

from playwright.async_api import APIRequestContext, Page

from pagediff.errors import ResourceFetchFailure
from pagediff.models.capture import ImageResource, ResourceManifest, TextResource
from pagediff.models.config import RenderConfig

logger = logging.getLogger(__name__)

_DISCOVER_RESOURCES_JS = """
() => {
    const resources = [];
    document.querySelectorAll('link[rel="stylesheet"]').forEach(link => {
        if (link.href) resources.push({ type: 'css', url: link.href });
    });
    document.querySelectorAll('script[src]').forEach(script => {
        if (script.src) resources.push({ type: 'javascript', url: script.src });
    });
    document.querySelectorAll('img[src]').forEach(img => {
        if (img.src) resources.push({ type: 'image', url: img.src });
    });
    return resources;
}
"""


async def discover_resources(page: Page) -> list[dict]:
    """Return ``[{type, url}]`` for every linked stylesheet, script and image."""
    try:
        return await page.evaluate(_DISCOVER_RESOURCES_JS)
    except Exception as e:
        logger.warning("Resource discovery failed on %s: %s", page.url, e)
        return []


async def _fetch_text(request: APIRequestContext, url: str, timeout_ms: float) -> str:
    try:
        response = await request.get(url, timeout=timeout_ms)
    except Exception as e:
        raise ResourceFetchFailure(f"Error fetching resource {url}: {e}", url=url) from e
    if response.status != 200:
        raise ResourceFetchFailure(f"HTTP {response.status} for {url}", url=url, status=response.status)
    return await response.text()


async def fetch_resource_content(request: APIRequestContext, url: str, timeout_seconds: float) -> str | None:
    """Fetch a resource body, or ``None`` on any failure or timeout."""
    try:
        return await asyncio.wait_for(
            _fetch_text(request, url, timeout_seconds * 1000),
            timeout=timeout_seconds,
        )
    except asyncio.TimeoutError:
        logger.debug("Timed out fetching resource %s after %.0fs", url, timeout_seconds)
    except ResourceFetchFailure as e:
        logger.debug("%s", e)
    return None


async def build_manifest(
    request: APIRequestContext, discovered: list[dict], config: RenderConfig
) -> ResourceManifest:
    """Fetch CSS/JS bodies in bounded batches and assemble the manifest.

    Resources that cannot be fetched are left out; images are listed by URL only.
    """
    text_entries = [r for r in discovered if r.get("type") in ("css", "javascript")]
    fetched: dict[str, list[TextResource]] = {"css": [], "javascript": []}

    batch_size = config.resource_batch_size
    for i in range(0, len(text_entries), batch_size):
        batch = text_entries[i:i + batch_size]
        contents = await asyncio.gather(*(
            fetch_resource_content(request, r["url"], config.resource_timeout_seconds)
            for r in batch
        ))
        for resource, content in zip(batch, contents):
            if content is None:
                continue
            fetched[resource["type"]].append(TextResource(url=resource["url"], content=content))

    manifest = ResourceManifest(
        css=fetched["css"],
        javascript=fetched["javascript"],
        images=[ImageResource(url=r["url"]) for r in discovered if r.get("type") == "image"],
    )

    logger.debug(
        "Manifest: %d css, %d js, %d images (%d text resources discovered)",
        len(manifest.css), len(manifest.javascript), len(manifest.images), len(text_entries),
    )
    return manifest
