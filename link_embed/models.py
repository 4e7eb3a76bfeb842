"""Data models shared by the embed pipeline."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True, order=True)
class Position:
    """A zero-based location inside a document."""

    line: int
    column: int


@dataclass(frozen=True)
class Boundary:
    start: Position
    end: Position


@dataclass(frozen=True)
class Selection:
    """Text picked up for one embed invocation.

    ``boundary`` is ``None`` when the text did not come from the document,
    and ``replaceable`` is only true for a real range selected by the user.
    """

    text: str
    boundary: Optional[Boundary]
    replaceable: bool


@dataclass(frozen=True)
class ParseResult:
    """Metadata extracted from a remote page by one parser."""

    title: str
    description: str
    image_url: str
    url: str


@dataclass
class ParserAttempt:
    """Outcome of a single parser invocation during resolution."""

    name: str
    priority: int
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class DownloadedImage:
    """An image committed into content-addressed storage."""

    content_hash: str
    extension: str
    final_name: str
    final_path: str


@dataclass(frozen=True)
class PlaceholderRegion:
    """Range occupied by a placeholder plus the exact text inserted there."""

    start: Position
    end: Position
    rendered_text: str


@dataclass(frozen=True)
class EmbedInfo:
    """The four fields carried by an ``embed`` block."""

    title: str
    image: str
    description: str
    url: str


class EmbedState(str, enum.Enum):
    IDLE = "idle"
    PLACEHOLDER_INSERTED = "placeholder_inserted"
    RESOLVING = "resolving"
    IMAGE_FETCHING = "image_fetching"
    READY_TO_COMMIT = "ready_to_commit"
    COMMITTED = "committed"
    ABORTED = "aborted"


@dataclass
class EmbedOutcome:
    """Final report for one embed operation."""

    url: str
    state: EmbedState
    placeholder: Optional[PlaceholderRegion] = None
    result: Optional[ParseResult] = None
    image_name: Optional[str] = None
    embed_text: Optional[str] = None
    error: Optional[Exception] = None
    attempts: List[ParserAttempt] = field(default_factory=list)

    @property
    def committed(self) -> bool:
        return self.state is EmbedState.COMMITTED
