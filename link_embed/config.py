"""Configuration objects and constants for embedding links."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, List, Mapping, Optional

logger = logging.getLogger("link_embed")

DEFAULT_PRIMARY_PARSER = "microlink"
DEFAULT_BACKUP_PARSER = "jsonlink"
DEFAULT_SERVING_BASE = "http://localhost:8181"
DEFAULT_ATTACHMENTS_DIR = "attachments"

# Keys written by the settings tab of the editor plugin.
_LEGACY_KEYS = {
    "inPlace": "in_place",
    "delay": "delay_ms",
    "servingBase": "serving_base",
    "attachmentsDir": "attachments_dir",
    "httpTimeout": "http_timeout",
}


@dataclass
class EmbedSettings:
    """User preferences read by the embed pipeline at resolution time."""

    primary: str = DEFAULT_PRIMARY_PARSER
    backup: str = DEFAULT_BACKUP_PARSER
    in_place: bool = False
    delay_ms: int = 0
    debug: bool = False
    attachments_dir: str = DEFAULT_ATTACHMENTS_DIR
    serving_base: str = DEFAULT_SERVING_BASE
    http_timeout: float = 15.0

    def parser_chain(self, override: Optional[str] = None) -> List[str]:
        """Ordered parser names for one embed, or just ``override``."""
        if override:
            return [override]
        chain: List[str] = []
        for name in (self.primary, self.backup):
            if name and name not in chain:
                chain.append(name)
        return chain

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "EmbedSettings":
        """Overlay saved values on the defaults, ignoring unknown keys."""
        known = {item.name for item in fields(cls)}
        values = {}
        for key, value in data.items():
            name = _LEGACY_KEYS.get(key, key)
            if name not in known:
                logger.debug("Ignoring unknown setting %r", key)
                continue
            if value is None:
                continue
            values[name] = value
        settings = cls(**values)
        settings.delay_ms = max(0, int(settings.delay_ms))
        settings.http_timeout = float(settings.http_timeout)
        settings.serving_base = settings.serving_base.rstrip("/")
        return settings


def load_settings(path: Optional[Path]) -> EmbedSettings:
    """Read settings from a JSON file; a missing file yields the defaults."""
    if path is None or not Path(path).exists():
        return EmbedSettings()
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a JSON object")
    return EmbedSettings.from_mapping(data)
