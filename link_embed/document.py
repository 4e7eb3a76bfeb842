"""Document and notification interfaces used by the embed protocol."""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol

from .models import Position

logger = logging.getLogger("link_embed")


class Document(Protocol):
    """The editor operations the embed protocol relies on."""

    def get_cursor(self) -> Position: ...

    def set_cursor(self, position: Position) -> None: ...

    def get_line(self, line: int) -> str: ...

    def line_count(self) -> int: ...

    def get_range(self, start: Position, end: Position) -> str: ...

    def replace_range(self, text: str, start: Position, end: Position) -> None: ...

    def get_selection(self) -> Optional[tuple]: ...


class Notifier(Protocol):
    def notify(self, message: str) -> None: ...


class LoggingNotifier:
    """Show notices through the log."""

    def __init__(self, name: str = "link_embed") -> None:
        self._logger = logging.getLogger(name)

    def notify(self, message: str) -> None:
        self._logger.warning("%s", message)


class RecordingNotifier:
    """Collect notices in memory."""

    def __init__(self) -> None:
        self.messages: List[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)


class TextDocument:
    """In-memory text buffer with line/column addressing.

    Positions are clamped to the buffer the way editors do: a line past
    the end maps to the last line, a column past the end of a line maps to
    its end.
    """

    def __init__(self, text: str = "") -> None:
        self._lines: List[str] = text.split("\n")
        self._cursor = Position(0, 0)
        self._selection: Optional[tuple] = None

    @property
    def text(self) -> str:
        return "\n".join(self._lines)

    def line_count(self) -> int:
        return len(self._lines)

    def get_line(self, line: int) -> str:
        return self._lines[line]

    def clamp(self, position: Position) -> Position:
        line = min(max(position.line, 0), len(self._lines) - 1)
        column = min(max(position.column, 0), len(self._lines[line]))
        return Position(line, column)

    def _offset(self, position: Position) -> int:
        position = self.clamp(position)
        return sum(len(line) + 1 for line in self._lines[: position.line]) + position.column

    def _position(self, offset: int) -> Position:
        for index, line in enumerate(self._lines):
            if offset <= len(line):
                return Position(index, offset)
            offset -= len(line) + 1
        last = len(self._lines) - 1
        return Position(last, len(self._lines[last]))

    def get_cursor(self) -> Position:
        return self._cursor

    def set_cursor(self, position: Position) -> None:
        self._cursor = self.clamp(position)
        self._selection = None

    def select(self, start: Position, end: Position) -> None:
        start, end = sorted((self.clamp(start), self.clamp(end)))
        self._selection = (start, end)
        self._cursor = end

    def get_selection(self) -> Optional[tuple]:
        """Return ``(start, end)`` for a non-empty selection."""
        if self._selection is None or self._selection[0] == self._selection[1]:
            return None
        return self._selection

    def get_range(self, start: Position, end: Position) -> str:
        text = self.text
        return text[self._offset(start) : self._offset(end)]

    def replace_range(self, text: str, start: Position, end: Position) -> None:
        """Replace ``start..end`` with ``text`` and leave the cursor after it."""
        source = self.text
        begin, finish = sorted((self._offset(start), self._offset(end)))
        updated = source[:begin] + text + source[finish:]
        self._lines = updated.split("\n")
        self._selection = None
        self._cursor = self._position(begin + len(text))
