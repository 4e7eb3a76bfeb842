from __future__ import annotations

import gzip
import hashlib
import os
import stat
from pathlib import Path
from typing import Dict, List, Optional, Union

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from link_embed.errors import DownloadFailed, StorageFailed
from link_embed.images import ImageStore, extension_from_content_type

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"pixels" * 200


class _FakeResponse:
    def __init__(
        self,
        body: bytes,
        content_type: Optional[str] = "image/png",
        status_code: int = 200,
        content_length: Optional[str] = None,
        content_encoding: Optional[str] = None,
    ) -> None:
        self.body = body
        self.status_code = status_code
        self.headers: CaseInsensitiveDict = CaseInsensitiveDict()
        if content_type is not None:
            self.headers["Content-Type"] = content_type
        if content_length is not None:
            self.headers["Content-Length"] = content_length
        if content_encoding is not None:
            self.headers["Content-Encoding"] = content_encoding

    def __enter__(self) -> "_FakeResponse":
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def iter_content(self, chunk_size: int = 1):
        for start in range(0, len(self.body), 100):
            yield self.body[start : start + 100]


class _FakeSession:
    def __init__(self, responses: Dict[str, Union[_FakeResponse, Exception]]) -> None:
        self.responses = responses
        self.calls: List[str] = []

    def get(self, url: str, timeout: float = 0, stream: bool = False) -> _FakeResponse:
        self.calls.append(url)
        response = self.responses[url]
        if isinstance(response, Exception):
            raise response
        return response


def _store(session: _FakeSession, staging: Path, **kwargs) -> ImageStore:
    return ImageStore(session=session, staging_dir=staging, **kwargs)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    ("content_type", "expected"),
    [
        ("image/png", "png"),
        ("image/jpeg", "jpeg"),
        ("image/webp; charset=binary", "webp"),
        ("IMAGE/GIF", "gif"),
        ("image/svg+xml", "svg"),
        (None, "jpg"),
        ("", "jpg"),
        ("garbage", "jpg"),
        ("image/", "jpg"),
        ("image/png x", "jpg"),
        ("image/..\\evil", "jpg"),
        ("image/x-icon", "x-icon"),
    ],
)
def test_extension_from_content_type(content_type: Optional[str], expected: str) -> None:
    assert extension_from_content_type(content_type) == expected


def test_store_names_file_by_content_hash(tmp_path: Path) -> None:
    session = _FakeSession({"https://img/x.png": _FakeResponse(PNG_BYTES)})
    store = _store(session, tmp_path / "staging")

    name = store.store("https://img/x.png", tmp_path / "vault" / "attachments")

    assert name == f"{hashlib.sha256(PNG_BYTES).hexdigest()}.png"
    stored = tmp_path / "vault" / "attachments" / name
    assert stored.read_bytes() == PNG_BYTES
    assert list((tmp_path / "staging").iterdir()) == []


def test_identical_bytes_from_different_urls_share_one_artifact(tmp_path: Path) -> None:
    session = _FakeSession(
        {
            "https://cdn-a.example/cover.png": _FakeResponse(PNG_BYTES),
            "https://cdn-b.example/other-name.png": _FakeResponse(PNG_BYTES),
        }
    )
    store = _store(session, tmp_path / "staging")
    destination = tmp_path / "attachments"

    first = store.store("https://cdn-a.example/cover.png", destination)
    second = store.store("https://cdn-b.example/other-name.png", destination)

    assert first == second
    assert [path.name for path in destination.iterdir()] == [first]


def test_download_reports_hash_and_paths(tmp_path: Path) -> None:
    session = _FakeSession({"https://img/a": _FakeResponse(PNG_BYTES, content_type=None)})
    image = _store(session, tmp_path / "staging").download("https://img/a", tmp_path / "out")

    assert image.content_hash == hashlib.sha256(PNG_BYTES).hexdigest()
    assert image.extension == "jpg"
    assert image.final_name == f"{image.content_hash}.jpg"
    assert Path(image.final_path) == tmp_path / "out" / image.final_name


def test_http_error_raises_download_failed_and_cleans_staging(tmp_path: Path) -> None:
    session = _FakeSession({"https://img/missing": _FakeResponse(b"", status_code=404)})
    store = _store(session, tmp_path / "staging")

    with pytest.raises(DownloadFailed):
        store.store("https://img/missing", tmp_path / "attachments")

    assert list((tmp_path / "staging").iterdir()) == []
    assert not (tmp_path / "attachments").exists()


def test_connection_error_raises_download_failed(tmp_path: Path) -> None:
    session = _FakeSession({"https://img/down": requests.ConnectionError("refused")})

    with pytest.raises(DownloadFailed):
        _store(session, tmp_path / "staging").store("https://img/down", tmp_path / "attachments")

    assert list((tmp_path / "staging").iterdir()) == []


def test_truncated_body_is_rejected(tmp_path: Path) -> None:
    response = _FakeResponse(PNG_BYTES, content_length=str(len(PNG_BYTES) + 10))
    session = _FakeSession({"https://img/short": response})

    with pytest.raises(DownloadFailed, match="Truncated"):
        _store(session, tmp_path / "staging").store("https://img/short", tmp_path / "attachments")

    assert list((tmp_path / "staging").iterdir()) == []


def test_oversized_body_is_rejected(tmp_path: Path) -> None:
    session = _FakeSession({"https://img/huge": _FakeResponse(PNG_BYTES)})
    store = _store(session, tmp_path / "staging", max_bytes=100)

    with pytest.raises(DownloadFailed, match="larger than"):
        store.store("https://img/huge", tmp_path / "attachments")


def test_unwritable_destination_raises_storage_failed(tmp_path: Path) -> None:
    blocker = tmp_path / "attachments"
    blocker.write_text("not a directory")
    session = _FakeSession({"https://img/x.png": _FakeResponse(PNG_BYTES)})

    with pytest.raises(StorageFailed):
        _store(session, tmp_path / "staging").store("https://img/x.png", blocker)

    assert list((tmp_path / "staging").iterdir()) == []


def test_length_check_skipped_for_compressed_transfer(tmp_path: Path) -> None:
    svg = b"<svg xmlns='http://www.w3.org/2000/svg'>" + b"<rect/>" * 500 + b"</svg>"
    compressed = gzip.compress(svg)
    response = _FakeResponse(
        svg,
        content_type="image/svg+xml",
        content_length=str(len(compressed)),
        content_encoding="gzip",
    )
    session = _FakeSession({"https://cdn.example/logo.svg": response})

    name = _store(session, tmp_path / "staging").store("https://cdn.example/logo.svg", tmp_path / "attachments")

    assert name == f"{hashlib.sha256(svg).hexdigest()}.svg"
    assert (tmp_path / "attachments" / name).read_bytes() == svg


def test_length_check_still_applies_to_identity_encoding(tmp_path: Path) -> None:
    response = _FakeResponse(PNG_BYTES, content_length=str(len(PNG_BYTES) - 1), content_encoding="identity")
    session = _FakeSession({"https://img/x.png": response})

    with pytest.raises(DownloadFailed, match="Truncated"):
        _store(session, tmp_path / "staging").store("https://img/x.png", tmp_path / "attachments")


def test_stored_file_is_readable_by_other_processes(tmp_path: Path) -> None:
    session = _FakeSession({"https://img/x.png": _FakeResponse(PNG_BYTES)})
    previous = os.umask(0o022)
    try:
        name = _store(session, tmp_path / "staging").store("https://img/x.png", tmp_path / "attachments")
    finally:
        os.umask(previous)

    mode = stat.S_IMODE((tmp_path / "attachments" / name).stat().st_mode)
    assert mode == 0o644
