"""Metadata from a page rendered in headless Chromium."""

from __future__ import annotations

import logging
from typing import Tuple

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from ..errors import ParseError
from ..models import ParseResult
from .base import Parser
from .local import extract_metadata

logger = logging.getLogger("link_embed")


class BrowserParser(Parser):
    """Render the page with Playwright so script-built metadata is visible."""

    name = "browser"

    def __init__(self, timeout: float = 30.0, wait_after_load: float = 1.0) -> None:
        super().__init__(timeout)
        self.wait_after_load = wait_after_load

    async def render_page(self, url: str) -> Tuple[str, str]:
        """Navigate to a URL and return the HTML and final URL."""
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(headless=True)
            page = await browser.new_page()
            page.set_default_navigation_timeout(self.timeout * 1000)
            try:
                logger.info("Loading %s", url)
                await page.goto(url, wait_until="networkidle")
                if self.wait_after_load:
                    await page.wait_for_timeout(int(self.wait_after_load * 1000))
                html = await page.content()
                final_url = page.url
            finally:
                await browser.close()
        return html, final_url

    async def parse(self, url: str) -> ParseResult:
        try:
            html, final_url = await self.render_page(url)
        except PlaywrightError as exc:
            raise ParseError(f"browser: failed to render {url}: {exc}") from exc
        data = extract_metadata(html, final_url)
        self._log("metadata %s", data)
        return self.build_result(url, data["title"], data["description"], data["image"], data["url"])
