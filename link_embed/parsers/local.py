"""Scrape Open Graph and HTML metadata directly from the page."""

from __future__ import annotations

import asyncio
from typing import Optional
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup
from readability import Document

from ..errors import ParseError
from ..models import ParseResult
from .base import Parser

USER_AGENT = "Mozilla/5.0 (compatible; link-embed/0.3; +https://github.com/link-embed)"


def _meta(soup: BeautifulSoup, *keys: str) -> Optional[str]:
    for key in keys:
        tag = soup.find("meta", attrs={"property": key}) or soup.find(
            "meta", attrs={"name": key}
        )
        if tag and tag.get("content"):
            return tag["content"].strip()
    return None


def _first_image(soup: BeautifulSoup) -> Optional[str]:
    for img in soup.find_all("img"):
        src = img.get("src")
        if src and not src.startswith("data:"):
            return src
    return None


def extract_metadata(html: str, final_url: str) -> dict:
    """Pull title, description, preview image and canonical URL from HTML."""
    soup = BeautifulSoup(html, "html.parser")

    title = _meta(soup, "og:title", "twitter:title")
    if not title:
        try:
            title = Document(html).short_title() or None
        except Exception:  # pylint: disable=broad-except
            title = None
    if not title and soup.title and soup.title.string:
        title = soup.title.string.strip()

    description = _meta(soup, "og:description", "twitter:description", "description")

    image = _meta(soup, "og:image", "og:image:url", "twitter:image", "twitter:image:src")
    if not image:
        link = soup.find("link", rel="image_src")
        image = link.get("href") if link else None
    if not image:
        image = _first_image(soup)
    if not image:
        icon = soup.find("link", rel=lambda value: value and "icon" in value)
        image = icon.get("href") if icon and icon.get("href") else "/favicon.ico"

    canonical = _meta(soup, "og:url")
    if not canonical:
        link = soup.find("link", rel="canonical")
        canonical = link.get("href") if link else None

    return {
        "title": title,
        "description": description if description is not None else "",
        "image": urljoin(final_url, image),
        "url": urljoin(final_url, canonical) if canonical else final_url,
    }


class LocalParser(Parser):
    """Fetch the page with requests and read its metadata tags."""

    name = "local"

    def __init__(self, timeout: float = 15.0, session: Optional[requests.Session] = None) -> None:
        super().__init__(timeout)
        self.session = session or requests.Session()

    def _fetch(self, url: str) -> tuple:
        resp = self.session.get(
            url, timeout=self.timeout, headers={"User-Agent": USER_AGENT}
        )
        resp.raise_for_status()
        return resp.text, resp.url or url

    async def parse(self, url: str) -> ParseResult:
        try:
            html, final_url = await asyncio.to_thread(self._fetch, url)
        except requests.RequestException as exc:
            raise ParseError(f"local: failed to fetch {url}: {exc}") from exc
        data = extract_metadata(html, final_url)
        self._log("metadata %s", data)
        return self.build_result(url, data["title"], data["description"], data["image"], data["url"])
