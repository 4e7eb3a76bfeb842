"""Utility helpers for recognising URLs in free text."""

from __future__ import annotations

import re

URL_PATTERN = re.compile(
    r"^(?:https?|ftp)://"
    r"(?:[^\s:@/]+(?::[^\s@/]*)?@)?"
    r"(?:localhost|(?:[a-z0-9\u00a1-\uffff](?:[a-z0-9\u00a1-\uffff-]{0,61}[a-z0-9\u00a1-\uffff])?\.)+"
    r"[a-z\u00a1-\uffff]{2,}\.?|\d{1,3}(?:\.\d{1,3}){3}|\[[0-9a-f:]+\])"
    r"(?::\d{2,5})?"
    r"(?:[/?#][^\s]*)?$",
    re.IGNORECASE,
)


def is_url(text: str) -> bool:
    """Return True when ``text`` is a single absolute URL."""
    if not text:
        return False
    return URL_PATTERN.match(text.strip()) is not None
