"""Editor commands that start an embed."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Iterable, List, Mapping, Optional

from .config import EmbedSettings
from .document import Document, LoggingNotifier, Notifier
from .images import ImageStore
from .models import Boundary, EmbedOutcome, Selection
from .parsers import Parser, build_parsers
from .protocol import EmbedCommitProtocol
from .resolver import MetadataResolver
from .utils import is_url

logger = logging.getLogger("link_embed")

INVALID_URL_NOTICE = "Need a link to convert to embed."

CommandCallback = Callable[[Document, str], Awaitable[Optional[EmbedOutcome]]]


@dataclass(frozen=True)
class Command:
    id: str
    name: str
    callback: CommandCallback


def acquire_selection(document: Document, clipboard: str = "") -> Selection:
    """Use the selected text, falling back to the clipboard at the cursor."""
    selected = document.get_selection()
    if selected is not None:
        start, end = selected
        text = document.get_range(start, end)
        if text.strip():
            return Selection(text=text.strip(), boundary=Boundary(start, end), replaceable=True)
    return Selection(
        text=(clipboard or "").strip(),
        boundary=None,
        replaceable=False,
    )


def check_url_valid(selection: Selection, notifier: Notifier) -> bool:
    if not (selection.text and is_url(selection.text)):
        notifier.notify(INVALID_URL_NOTICE)
        return False
    return True


class EmbedCommands:
    """The generic embed command plus one command per registered parser."""

    def __init__(
        self,
        protocol: EmbedCommitProtocol,
        settings: EmbedSettings,
        notifier: Notifier,
        parser_names: Iterable[str],
    ) -> None:
        self.protocol = protocol
        self.settings = settings
        self.notifier = notifier
        self.parser_names = list(parser_names)

    async def run(
        self,
        document: Document,
        clipboard: str = "",
        parser: Optional[str] = None,
    ) -> Optional[EmbedOutcome]:
        selection = acquire_selection(document, clipboard)
        if not check_url_valid(selection, self.notifier):
            return None
        chain = self.settings.parser_chain(parser)
        logger.debug("Embedding %s with %s", selection.text, chain)
        return await self.protocol.embed(document, selection, chain)

    async def embed_link(self, document: Document, clipboard: str = "") -> Optional[EmbedOutcome]:
        return await self.run(document, clipboard)

    def _with_parser(self, name: str) -> CommandCallback:
        async def callback(document: Document, clipboard: str = "") -> Optional[EmbedOutcome]:
            return await self.run(document, clipboard, parser=name)

        return callback

    def commands(self) -> List[Command]:
        table = [Command("embed-link", "Embed link", self.embed_link)]
        for name in self.parser_names:
            table.append(Command(f"embed-link-{name}", f"Embed link with {name}", self._with_parser(name)))
        return table

    def get(self, command_id: str) -> Command:
        for command in self.commands():
            if command.id == command_id:
                return command
        raise KeyError(command_id)


def build_embed_commands(
    settings: EmbedSettings,
    root: Path,
    notifier: Optional[Notifier] = None,
    parsers: Optional[Mapping[str, Parser]] = None,
    image_store: Optional[ImageStore] = None,
) -> EmbedCommands:
    """Wire parsers, resolver, image store and protocol from settings."""
    if notifier is None:
        notifier = LoggingNotifier()
    if parsers is None:
        parsers = build_parsers(timeout=settings.http_timeout)
    resolver = MetadataResolver(parsers, debug=settings.debug)
    store = image_store or ImageStore(timeout=settings.http_timeout)
    protocol = EmbedCommitProtocol(
        resolver,
        store,
        notifier,
        settings,
        attachments=Path(root) / settings.attachments_dir,
    )
    return EmbedCommands(protocol, settings, notifier, parsers.keys())
