"""Parser strategy interface shared by every metadata source."""

from __future__ import annotations

import abc
import logging
from typing import Any, Mapping, Optional

from ..errors import ParseError
from ..models import ParseResult

logger = logging.getLogger("link_embed")


class Parser(abc.ABC):
    """Turn a URL into :class:`ParseResult` or raise :class:`ParseError`."""

    name: str = ""

    def __init__(self, timeout: float = 15.0) -> None:
        self.timeout = timeout
        self.debug = False

    @abc.abstractmethod
    async def parse(self, url: str) -> ParseResult:
        raise NotImplementedError

    def _log(self, message: str, *args: Any) -> None:
        if self.debug:
            logger.debug("%s: " + message, self.name, *args)

    def build_result(
        self,
        url: str,
        title: Optional[str],
        description: Optional[str],
        image_url: Optional[str],
        canonical_url: Optional[str] = None,
    ) -> ParseResult:
        """Validate scraped fields; a missing field fails this parser."""
        values: Mapping[str, Optional[str]] = {
            "title": title,
            "description": description,
            "image": image_url,
        }
        missing = [key for key, value in values.items() if value is None]
        if missing:
            raise ParseError(f"{self.name} returned no {', '.join(missing)} for {url}")
        malformed = [key for key, value in values.items() if not isinstance(value, str)]
        if canonical_url is not None and not isinstance(canonical_url, str):
            malformed.append("url")
        if malformed:
            raise ParseError(f"{self.name} returned non-text {', '.join(malformed)} for {url}")
        return ParseResult(
            title=title.strip(),
            description=description.strip(),
            image_url=image_url.strip(),
            url=(canonical_url or url).strip(),
        )
