"""MCP server exposing link embedding tools."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .commands import build_embed_commands
from .config import EmbedSettings
from .document import RecordingNotifier, TextDocument
from .markdown import parse_embed_block, render_html

logger = logging.getLogger("link_embed.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="link-embed")


@mcp.tool()
async def embed(url: str, parser: Optional[str] = None, root: Optional[str] = None) -> str:
    """Resolve a URL and return its embed block, downloading the preview image."""
    settings = EmbedSettings()
    notifier = RecordingNotifier()
    document = TextDocument()

    vault = Path(root).expanduser() if root else Path.cwd()
    commands = build_embed_commands(settings, vault, notifier=notifier)
    outcome = await commands.run(document, url, parser=parser)

    if outcome is None or not outcome.committed:
        reason = "; ".join(notifier.messages) or "unknown error"
        raise RuntimeError(f"Failed to embed {url}: {reason}")
    return document.text


@mcp.tool()
async def render_embed(source: str) -> str:
    """Render the body of an embed block to HTML."""
    return render_html(parse_embed_block(source))


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()
