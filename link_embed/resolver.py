"""Ordered fallback across metadata parsers."""

from __future__ import annotations

import logging
from typing import List, Mapping, Optional, Sequence

from .errors import ParseError, ResolutionFailed
from .models import ParseResult, ParserAttempt
from .parsers import Parser

logger = logging.getLogger("link_embed")


class MetadataResolver:
    """Try parsers strictly in order and keep the first success.

    Parsers run one after another, never concurrently, so a slow parser
    delays the ones behind it but the outcome is deterministic.
    """

    def __init__(self, parsers: Mapping[str, Parser], debug: bool = False) -> None:
        self.parsers = parsers
        self.debug = debug

    async def resolve(
        self,
        url: str,
        parser_names: Sequence[str],
        attempts: Optional[List[ParserAttempt]] = None,
    ) -> ParseResult:
        """Return the first successful parse; ``attempts`` receives one record per try."""
        if attempts is None:
            attempts = []
        last_error: Optional[Exception] = None

        for priority, name in enumerate(parser_names):
            attempt = ParserAttempt(name=name, priority=priority)
            attempts.append(attempt)
            if self.debug:
                logger.debug("parser %s", name)

            parser = self.parsers.get(name)
            if parser is None:
                attempt.error = last_error = ParseError(f"Unknown parser {name!r}")
                logger.warning("Skipping unknown parser %r", name)
                continue

            parser.debug = self.debug
            try:
                result = await parser.parse(url)
            except ParseError as exc:
                attempt.error = last_error = exc
                logger.warning("Parser %s failed for %s: %s", name, url, exc)
                continue

            if self.debug:
                logger.debug("meta data %s", result)
            return result

        raise ResolutionFailed(url, attempts, last_error)
