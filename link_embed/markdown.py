"""Rendering and parsing of ``embed`` code blocks."""

from __future__ import annotations

from typing import Any, List, Mapping

import yaml
from jinja2 import Environment, StrictUndefined

from .models import EmbedInfo

EMBED_FENCE = "```embed"

MARKDOWN_TEMPLATE = """```embed
title: "{{ title | block_escape }}"
image: "{{ image | block_escape }}"
description: "{{ description | block_escape }}"
url: "{{ url | block_escape }}"
```
"""

HTML_TEMPLATE = """<div class="embed">
  <div class="w _lc _sm od-reset">
    <div class="wf">
      <div class="wc">
        <div class="e" style="background-image: url('{{ image | safe }}')"></div>
        <div class="wt">
          <div class="th _ls-2 _1nr">{{ title }}</div>
          <div class="td _ls-3 _1nr">{{ description }}</div>
          <div class="tf"><div class="lt _ls-1 _1nr"><a href="{{ url | safe }}">{{ url }}</a></div></div>
        </div>
      </div>
    </div>
  </div>
</div>"""

SPINNER = (
    "data:image/svg+xml;utf8,<svg xmlns='http://www.w3.org/2000/svg' viewBox='0 0 50 50'>"
    "<circle cx='25' cy='25' r='20' fill='none' stroke='%23888' stroke-width='5' "
    "stroke-dasharray='90 150'><animateTransform attributeName='transform' type='rotate' "
    "from='0 25 25' to='360 25 25' dur='1s' repeatCount='indefinite'/></circle></svg>"
)
PLACEHOLDER_TITLE = "Fetching"


def escape_block_value(value: Any) -> str:
    """Make a value safe inside a double-quoted YAML scalar on one line."""
    text = "" if value is None else str(value)
    text = text.replace("\\", "\\\\").replace('"', '\\"')
    return text.replace("\r\n", " ").replace("\n", " ").replace("\r", " ").replace("\t", " ")


def _build_environment(autoescape: bool) -> Environment:
    environment = Environment(
        autoescape=autoescape,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    environment.filters.setdefault("block_escape", escape_block_value)
    return environment


_MARKDOWN_ENV = _build_environment(autoescape=False)
_HTML_ENV = _build_environment(autoescape=True)
_MARKDOWN = _MARKDOWN_ENV.from_string(MARKDOWN_TEMPLATE)
_HTML = _HTML_ENV.from_string(HTML_TEMPLATE)


def render_embed(info: EmbedInfo) -> str:
    """Render an ``embed`` block, including its trailing newline."""
    return _MARKDOWN.render(
        title=info.title,
        image=info.image,
        description=info.description,
        url=info.url,
    )


def render_placeholder(url: str) -> str:
    return render_embed(
        EmbedInfo(
            title=PLACEHOLDER_TITLE,
            image=SPINNER,
            description=f"Fetching {url}",
            url=url,
        )
    )


def parse_embed_block(source: str) -> EmbedInfo:
    """Read the YAML body of an ``embed`` block."""
    data = yaml.safe_load(source.strip()) or {}
    if not isinstance(data, Mapping):
        raise ValueError("Embed block must contain a mapping")
    return EmbedInfo(
        title=str(data.get("title") or ""),
        image=str(data.get("image") or ""),
        description=str(data.get("description") or ""),
        url=str(data.get("url") or ""),
    )


def render_html(info: EmbedInfo) -> str:
    """Produce display markup; title and description are HTML-escaped."""
    return _HTML.render(
        title=info.title,
        image=info.image,
        description=info.description,
        url=info.url,
    )


def extract_embed_blocks(markdown: str) -> List[str]:
    """Return the bodies of every fenced ``embed`` block in a document."""
    blocks: List[str] = []
    body: List[str] = []
    inside = False
    for line in markdown.splitlines():
        stripped = line.strip()
        if not inside:
            if stripped == EMBED_FENCE:
                inside = True
                body = []
            continue
        if stripped.startswith("```"):
            blocks.append("\n".join(body))
            inside = False
            continue
        body.append(line)
    return blocks
