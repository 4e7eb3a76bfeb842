"""Placeholder-then-commit orchestration for a single embed."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .config import EmbedSettings
from .document import Document, Notifier
from .errors import DocumentConflict, DownloadFailed, ResolutionFailed, StorageFailed
from .images import ImageStore
from .markdown import render_embed, render_placeholder
from .models import (
    EmbedInfo,
    EmbedOutcome,
    EmbedState,
    ParseResult,
    ParserAttempt,
    PlaceholderRegion,
    Position,
    Selection,
)
from .resolver import MetadataResolver

logger = logging.getLogger("link_embed")

FETCH_FAILED_NOTICE = "Failed to fetch data"
CONFLICT_NOTICE = "Placeholder preview has been deleted or modified. Replacing is cancelled."

_TRANSITIONS = {
    EmbedState.IDLE: {EmbedState.PLACEHOLDER_INSERTED},
    EmbedState.PLACEHOLDER_INSERTED: {EmbedState.RESOLVING},
    EmbedState.RESOLVING: {EmbedState.IMAGE_FETCHING, EmbedState.ABORTED},
    EmbedState.IMAGE_FETCHING: {EmbedState.READY_TO_COMMIT, EmbedState.ABORTED},
    EmbedState.READY_TO_COMMIT: {EmbedState.COMMITTED, EmbedState.ABORTED},
    EmbedState.COMMITTED: set(),
    EmbedState.ABORTED: set(),
}


def advance(start: Position, text: str) -> Position:
    """Position reached after inserting ``text`` at ``start``."""
    lines = text.split("\n")
    if len(lines) == 1:
        return Position(start.line, start.column + len(text))
    return Position(start.line + len(lines) - 1, len(lines[-1]))


@dataclass
class EmbedOperation:
    """State owned by one in-flight embed; never shared between embeds."""

    url: str
    selection: Selection
    parser_names: List[str]
    state: EmbedState = EmbedState.IDLE
    history: List[EmbedState] = field(default_factory=lambda: [EmbedState.IDLE])
    placeholder: Optional[PlaceholderRegion] = None
    result: Optional[ParseResult] = None
    image_name: Optional[str] = None
    embed_text: Optional[str] = None
    error: Optional[Exception] = None
    attempts: List[ParserAttempt] = field(default_factory=list)

    def transition(self, state: EmbedState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal embed transition {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)


class EmbedCommitProtocol:
    """Insert a placeholder, resolve metadata and image, then swap it in.

    The final embed replaces the placeholder only when the text at the
    recorded range still equals what was inserted; otherwise the result is
    dropped and the user's edits win.
    """

    def __init__(
        self,
        resolver: MetadataResolver,
        image_store: ImageStore,
        notifier: Notifier,
        settings: EmbedSettings,
        attachments: Union[str, Path],
    ) -> None:
        self.resolver = resolver
        self.image_store = image_store
        self.notifier = notifier
        self.settings = settings
        self.attachments = Path(attachments)

    async def embed(
        self,
        document: Document,
        selection: Selection,
        parser_names: Sequence[str],
        in_place: Optional[bool] = None,
    ) -> EmbedOutcome:
        operation = EmbedOperation(
            url=selection.text.strip(),
            selection=selection,
            parser_names=list(parser_names),
        )
        if in_place is None:
            in_place = self.settings.in_place

        operation.placeholder = self.insert_placeholder(document, selection, operation.url, in_place)
        operation.transition(EmbedState.PLACEHOLDER_INSERTED)

        operation.transition(EmbedState.RESOLVING)
        try:
            operation.result = await self.resolver.resolve(
                operation.url, operation.parser_names, operation.attempts
            )
        except ResolutionFailed as exc:
            return self._abort(operation, exc, FETCH_FAILED_NOTICE)

        operation.transition(EmbedState.IMAGE_FETCHING)
        try:
            operation.image_name = await asyncio.to_thread(
                self.image_store.store, operation.result.image_url, self.attachments
            )
        except (DownloadFailed, StorageFailed) as exc:
            return self._abort(operation, exc, FETCH_FAILED_NOTICE)

        operation.embed_text = self.build_embed(operation.result, operation.image_name)
        operation.transition(EmbedState.READY_TO_COMMIT)
        if self.settings.delay_ms > 0:
            await asyncio.sleep(self.settings.delay_ms / 1000)

        try:
            self.commit(document, operation.placeholder, operation.embed_text)
        except DocumentConflict as exc:
            return self._abort(operation, exc, CONFLICT_NOTICE)
        operation.transition(EmbedState.COMMITTED)
        if self.settings.debug:
            logger.debug("committed embed for %s", operation.url)
        return self._outcome(operation)

    def insert_placeholder(
        self,
        document: Document,
        selection: Selection,
        url: str,
        in_place: bool,
    ) -> PlaceholderRegion:
        """Put a placeholder on its own line and snapshot what was written."""
        if in_place and selection.replaceable and selection.boundary is not None:
            document.replace_range("", selection.boundary.start, selection.boundary.end)
            document.set_cursor(selection.boundary.start)

        cursor = document.get_cursor()
        line_text = document.get_line(cursor.line)
        if line_text:
            if cursor.line + 1 >= document.line_count():
                end_of_line = Position(cursor.line, len(line_text))
                document.replace_range("\n", end_of_line, end_of_line)
            start = Position(cursor.line + 1, 0)
        else:
            start = Position(cursor.line, 0)

        placeholder = render_placeholder(url)
        document.replace_range(placeholder, start, start)
        end = advance(start, placeholder)
        document.set_cursor(end)
        if self.settings.debug:
            logger.debug("placeholder for %s at %s..%s", url, start, end)
        return PlaceholderRegion(start=start, end=end, rendered_text=placeholder)

    def build_embed(self, result: ParseResult, image_name: str) -> str:
        serving_base = self.settings.serving_base.rstrip("/")
        return render_embed(
            EmbedInfo(
                title=result.title,
                image=f"{serving_base}/{image_name}",
                description=result.description,
                url=result.url,
            )
        )

    @staticmethod
    def commit(document: Document, region: PlaceholderRegion, embed_text: str) -> None:
        """Replace the placeholder if, and only if, it is byte-identical."""
        current = document.get_range(region.start, region.end)
        if current != region.rendered_text:
            raise DocumentConflict(
                f"Placeholder at {region.start.line}:{region.start.column} was modified"
            )
        document.replace_range(embed_text, region.start, region.end)

    def _abort(self, operation: EmbedOperation, error: Exception, notice: str) -> EmbedOutcome:
        operation.error = error
        operation.transition(EmbedState.ABORTED)
        logger.warning("Embed of %s aborted: %s", operation.url, error)
        self.notifier.notify(notice)
        return self._outcome(operation)

    def _outcome(self, operation: EmbedOperation) -> EmbedOutcome:
        return EmbedOutcome(
            url=operation.url,
            state=operation.state,
            placeholder=operation.placeholder,
            result=operation.result,
            image_name=operation.image_name,
            embed_text=operation.embed_text,
            error=operation.error,
            attempts=list(operation.attempts),
        )
