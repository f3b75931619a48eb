"""Browser launch helpers for page captures."""

from __future__ import annotations

from typing import Optional

from playwright.async_api import Browser, BrowserContext, Playwright

from pagediff.models.config import ViewportConfig

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/122.0.0.0 Safari/537.36"
)


async def launch_browser(playwright: Playwright, headless: bool = True) -> Browser:
    """Launch Chromium for screenshot capture."""
    return await playwright.chromium.launch(
        headless=headless,
        args=[
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--disable-blink-features=AutomationControlled",
        ],
    )


async def create_capture_context(
    browser: Browser,
    viewport: ViewportConfig,
    user_agent: Optional[str] = None,
) -> BrowserContext:
    """Create a context with a fixed viewport, locale and timezone."""
    return await browser.new_context(
        viewport={"width": viewport.width, "height": viewport.height},
        user_agent=user_agent or DEFAULT_USER_AGENT,
        locale="en-US",
        timezone_id="America/New_York",
        extra_http_headers={"Accept-Language": "en-US,en;q=0.9"},
    )
