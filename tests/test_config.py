from __future__ import annotations

import json
from pathlib import Path

import pytest

from link_embed.config import EmbedSettings, load_settings


def test_defaults() -> None:
    settings = EmbedSettings()

    assert settings.parser_chain() == ["microlink", "jsonlink"]
    assert settings.serving_base == "http://localhost:8181"
    assert settings.in_place is False
    assert settings.delay_ms == 0


def test_parser_chain_override_and_dedupe() -> None:
    settings = EmbedSettings(primary="local", backup="local")

    assert settings.parser_chain() == ["local"]
    assert settings.parser_chain("browser") == ["browser"]


def test_from_mapping_accepts_saved_plugin_keys() -> None:
    settings = EmbedSettings.from_mapping(
        {
            "primary": "local",
            "backup": "microlink",
            "inPlace": True,
            "delay": "250",
            "debug": True,
            "servingBase": "http://localhost:9000/",
            "popup": True,
        }
    )

    assert settings.primary == "local"
    assert settings.in_place is True
    assert settings.delay_ms == 250
    assert settings.serving_base == "http://localhost:9000"


def test_load_settings(tmp_path: Path) -> None:
    assert load_settings(tmp_path / "missing.json") == EmbedSettings()

    path = tmp_path / "data.json"
    path.write_text(json.dumps({"backup": "local"}), encoding="utf-8")
    assert load_settings(path).parser_chain() == ["microlink", "local"]

    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(path)


def test_from_mapping_keeps_defaults_for_null_values() -> None:
    settings = EmbedSettings.from_mapping(
        {"servingBase": None, "delay": None, "httpTimeout": None, "primary": None, "debug": True}
    )

    assert settings.serving_base == "http://localhost:8181"
    assert settings.delay_ms == 0
    assert settings.http_timeout == 15.0
    assert settings.primary == "microlink"
    assert settings.debug is True
