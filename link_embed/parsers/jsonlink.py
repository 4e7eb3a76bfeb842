"""Metadata from the jsonlink.io extraction API."""

from __future__ import annotations

import asyncio
import os
from typing import Any, Dict, Optional

import requests

from ..errors import ParseError
from ..models import ParseResult
from .base import Parser

JSONLINK_ENDPOINT = "https://jsonlink.io/api/extract"


class JsonlinkParser(Parser):
    name = "jsonlink"

    def __init__(
        self,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
        endpoint: str = JSONLINK_ENDPOINT,
        api_key: Optional[str] = None,
    ) -> None:
        super().__init__(timeout)
        self.session = session or requests.Session()
        self.endpoint = endpoint
        self.api_key = api_key if api_key is not None else os.getenv("JSONLINK_API_KEY")

    def _fetch(self, url: str) -> Dict[str, Any]:
        params = {"url": url}
        if self.api_key:
            params["api_key"] = self.api_key
        resp = self.session.get(self.endpoint, params=params, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    async def parse(self, url: str) -> ParseResult:
        try:
            data = await asyncio.to_thread(self._fetch, url)
        except (requests.RequestException, ValueError) as exc:
            raise ParseError(f"jsonlink: request for {url} failed: {exc}") from exc
        self._log("response %s", data)
        if not isinstance(data, dict) or data.get("error"):
            raise ParseError(f"jsonlink: unsuccessful response for {url}")

        images = data.get("images") or []
        if not isinstance(images, list):
            raise ParseError(f"jsonlink: malformed images for {url}")
        candidates = [item for item in images if isinstance(item, str) and item]
        image = candidates[0] if candidates else data.get("favicon")
        return self.build_result(
            url,
            data.get("title"),
            data.get("description") or "",
            image,
            data.get("url"),
        )
