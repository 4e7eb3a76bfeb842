from __future__ import annotations

import hashlib
from pathlib import Path

import pytest
import yaml

from link_embed import cli
from link_embed.commands import build_embed_commands
from link_embed.errors import ParseError
from link_embed.markdown import render_embed
from link_embed.models import EmbedInfo, ParseResult

URL = "https://example.com/page"


class _FakeParser:
    name = "microlink"

    def __init__(self, ok: bool = True) -> None:
        self.ok = ok
        self.debug = False

    async def parse(self, url: str) -> ParseResult:
        if not self.ok:
            raise ParseError("offline")
        return ParseResult(title="CLI title", description="CLI desc", image_url="https://img/x.png", url=url)


class _FakeImageStore:
    def store(self, source_url: str, destination: Path) -> str:
        return "abc123.png"


def _patch_builder(monkeypatch: pytest.MonkeyPatch, ok: bool = True) -> None:
    def _build(settings, root, notifier=None):
        return build_embed_commands(
            settings,
            root,
            notifier=notifier,
            parsers={"microlink": _FakeParser(ok)},  # type: ignore[dict-item]
            image_store=_FakeImageStore(),  # type: ignore[arg-type]
        )

    monkeypatch.setattr(cli, "build_embed_commands", _build)


def test_hash_command_prints_sha512(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    target = tmp_path / "file.bin"
    target.write_bytes(b"payload")

    assert cli.main(["hash", str(target)]) == 0

    assert capsys.readouterr().out.split()[0] == hashlib.sha512(b"payload").hexdigest()


def test_render_command_prints_html(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    note = tmp_path / "note.md"
    note.write_text(
        "# Note\n" + render_embed(EmbedInfo(title="A & B", image="i.png", description="d", url=URL)),
        encoding="utf-8",
    )

    assert cli.main(["render", str(note)]) == 0

    out = capsys.readouterr().out
    assert "A &amp; B" in out
    assert f'href="{URL}"' in out


def test_embed_command_rewrites_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_builder(monkeypatch)
    note = tmp_path / "note.md"
    note.write_text(f"Reading list\n{URL}", encoding="utf-8")

    code = cli.main(["embed", str(note), "--select-line", "1", "--in-place"])

    assert code == 0
    text = note.read_text(encoding="utf-8")
    assert text.startswith("Reading list\n```embed\n")
    body = yaml.safe_load(text.split("```embed\n", 1)[1].split("```", 1)[0])
    assert body["title"] == "CLI title"
    assert body["image"] == "http://localhost:8181/abc123.png"


def test_embed_command_defaults_to_embed_subcommand(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_builder(monkeypatch, ok=False)
    note = tmp_path / "note.md"
    note.write_text("", encoding="utf-8")

    code = cli.main([str(note), "--url", URL])

    assert code == 1
    assert 'title: "Fetching"' in note.read_text(encoding="utf-8")


def test_embed_command_rejects_non_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_builder(monkeypatch)
    note = tmp_path / "note.md"
    note.write_text("plain", encoding="utf-8")

    assert cli.main(["embed", str(note), "--url", "not a url"]) == 2
    assert note.read_text(encoding="utf-8") == "plain"
