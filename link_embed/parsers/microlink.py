"""Metadata from the microlink.io API."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import requests

from ..errors import ParseError
from ..models import ParseResult
from .base import Parser

MICROLINK_ENDPOINT = "https://api.microlink.io"


def _asset_url(asset: Any) -> Optional[str]:
    """Microlink describes media as objects carrying a ``url`` key."""
    if isinstance(asset, dict) and isinstance(asset.get("url"), str):
        return asset["url"]
    return None


class MicrolinkParser(Parser):
    name = "microlink"

    def __init__(
        self,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
        endpoint: str = MICROLINK_ENDPOINT,
    ) -> None:
        super().__init__(timeout)
        self.session = session or requests.Session()
        self.endpoint = endpoint

    def _fetch(self, url: str) -> Dict[str, Any]:
        resp = self.session.get(self.endpoint, params={"url": url}, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    async def parse(self, url: str) -> ParseResult:
        try:
            payload = await asyncio.to_thread(self._fetch, url)
        except (requests.RequestException, ValueError) as exc:
            raise ParseError(f"microlink: request for {url} failed: {exc}") from exc
        self._log("response %s", payload)
        if not isinstance(payload, dict) or payload.get("status") != "success":
            raise ParseError(f"microlink: unsuccessful response for {url}")

        data = payload.get("data")
        if not isinstance(data, dict):
            raise ParseError(f"microlink: malformed data for {url}")
        image = _asset_url(data.get("image")) or _asset_url(data.get("logo"))
        return self.build_result(
            url,
            data.get("title"),
            data.get("description") or "",
            image,
            data.get("url"),
        )
