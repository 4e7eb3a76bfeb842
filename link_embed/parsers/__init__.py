"""Registered metadata parsers, keyed by the names used in settings."""

from __future__ import annotations

from typing import Callable, Dict, Optional

from .base import Parser
from .browser import BrowserParser
from .jsonlink import JsonlinkParser
from .local import LocalParser
from .microlink import MicrolinkParser

PARSER_FACTORIES: Dict[str, Callable[..., Parser]] = {
    MicrolinkParser.name: MicrolinkParser,
    JsonlinkParser.name: JsonlinkParser,
    LocalParser.name: LocalParser,
    BrowserParser.name: BrowserParser,
}


def build_parsers(timeout: Optional[float] = None) -> Dict[str, Parser]:
    """Instantiate every registered parser."""
    if timeout is None:
        return {name: factory() for name, factory in PARSER_FACTORIES.items()}
    return {name: factory(timeout=timeout) for name, factory in PARSER_FACTORIES.items()}


__all__ = [
    "BrowserParser",
    "JsonlinkParser",
    "LocalParser",
    "MicrolinkParser",
    "PARSER_FACTORIES",
    "Parser",
    "build_parsers",
]
