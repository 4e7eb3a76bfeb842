"""Error taxonomy for the embed pipeline."""

from __future__ import annotations

from typing import List, Optional, Sequence

from .models import ParserAttempt


class LinkEmbedError(Exception):
    """Base class for errors raised by link_embed."""


class ParseError(LinkEmbedError):
    """A single parser could not produce usable metadata."""


class ResolutionFailed(LinkEmbedError):
    """Every parser in the chain failed for a URL."""

    def __init__(
        self,
        url: str,
        attempts: Sequence[ParserAttempt],
        last_error: Optional[Exception] = None,
    ) -> None:
        self.url = url
        self.attempts: List[ParserAttempt] = list(attempts)
        self.last_error = last_error
        names = ", ".join(attempt.name for attempt in self.attempts) or "no parsers"
        message = f"Failed to fetch data for {url} (tried {names})"
        if last_error is not None:
            message = f"{message}: {last_error}"
        super().__init__(message)


class DownloadFailed(LinkEmbedError):
    """The preview image could not be fetched."""


class StorageFailed(LinkEmbedError):
    """The preview image could not be written to its destination."""


class DocumentConflict(LinkEmbedError):
    """The placeholder changed between insertion and commit."""
