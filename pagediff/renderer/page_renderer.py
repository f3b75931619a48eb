"""Page renderer — captures a full-page screenshot, serialized HTML and linked resources."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from pagediff.errors import RenderFailure
from pagediff.models.capture import PageCapture
from pagediff.models.config import RenderConfig

from .browser import create_capture_context, launch_browser
from .resource_fetcher import build_manifest, discover_resources

logger = logging.getLogger(__name__)


class Renderer(Protocol):
    async def capture(self, url: str, screenshot_path: Path) -> PageCapture: ...


class PageRenderer:
    """Renders a URL in headless Chromium.

    Each capture gets its own browser, so concurrent captures share no state.
    """

    def __init__(self, config: RenderConfig):
        self.config = config

    async def capture(self, url: str, screenshot_path: Path) -> PageCapture:
        """Navigate to ``url`` and capture it; raises RenderFailure on any failure."""
        logger.info("Capturing %s", url)
        try:
            async with async_playwright() as p:
                browser = await launch_browser(p, headless=self.config.headless)
                try:
                    context = await create_capture_context(
                        browser, self.config.viewport, self.config.user_agent,
                    )
                    page = await context.new_page()

                    logger.debug("Navigating to %s", url)
                    response = await page.goto(
                        url,
                        wait_until=self.config.wait_until,
                        timeout=self.config.navigation_timeout_seconds * 1000,
                    )
                    if response is None:
                        raise RenderFailure(f"No response received for {url}", url=url)
                    if not 200 <= response.status < 300:
                        raise RenderFailure(
                            f"HTTP {response.status} for {url}", url=url, status=response.status,
                        )

                    logger.debug("Page loaded, analyzing resources...")
                    html = await page.content()
                    discovered = await discover_resources(page)
                    resources = await build_manifest(context.request, discovered, self.config)

                    screenshot_path.parent.mkdir(parents=True, exist_ok=True)
                    logger.debug("Saving screenshot to %s", screenshot_path)
                    await page.screenshot(path=str(screenshot_path), full_page=self.config.full_page)
                finally:
                    await browser.close()
        except RenderFailure:
            raise
        except PlaywrightError as e:
            raise RenderFailure(f"Failed to capture screenshot of {url}: {e}", url=url) from e

        logger.info("Captured %s -> %s", url, screenshot_path)
        return PageCapture(
            url=url,
            html=html,
            resources=resources,
            screenshot_path=str(screenshot_path),
        )
