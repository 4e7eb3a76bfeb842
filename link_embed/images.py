"""Image downloading and content-addressed storage."""

from __future__ import annotations

import logging
import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import Optional, Union

import requests

from .errors import DownloadFailed, StorageFailed
from .hashing import IMAGE_HASH_ALGORITHM, hash_file
from .models import DownloadedImage

logger = logging.getLogger("link_embed")

DEFAULT_EXTENSION = "jpg"
MAX_IMAGE_BYTES = 10 * 1024 * 1024
CHUNK_SIZE = 64 * 1024
EXTENSION_PATTERN = re.compile(r"^[a-z0-9.-]+$")


def extension_from_content_type(content_type: Optional[str]) -> str:
    """Guess a file extension from a Content-Type header value."""
    if not content_type:
        return DEFAULT_EXTENSION
    parts = content_type.split(";")[0].strip().split("/")
    if len(parts) != 2:
        return DEFAULT_EXTENSION
    subtype = parts[1].strip().lower().split("+")[0]
    if not EXTENSION_PATTERN.match(subtype):
        return DEFAULT_EXTENSION
    return subtype


def default_file_mode() -> int:
    """Permissions a newly created file would get under the current umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


class ImageStore:
    """Download remote images into a directory named by content hash.

    Identical bytes always land on the same ``<hash>.<ext>`` file, so
    concurrent or repeated downloads converge without coordination.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = 15.0,
        staging_dir: Optional[Union[str, Path]] = None,
        max_bytes: Optional[int] = MAX_IMAGE_BYTES,
        algorithm: str = IMAGE_HASH_ALGORITHM,
    ) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout
        self.staging_dir = Path(staging_dir) if staging_dir else None
        self.max_bytes = max_bytes
        self.algorithm = algorithm

    def store(self, source_url: str, destination: Union[str, Path]) -> str:
        """Download ``source_url`` into ``destination`` and return the file name."""
        return self.download(source_url, destination).final_name

    def download(self, source_url: str, destination: Union[str, Path]) -> DownloadedImage:
        staging = self._create_staging_file()
        try:
            extension = self._fetch_to(source_url, staging)
            content_hash = hash_file(staging, self.algorithm)
            final_name = f"{content_hash}.{extension}"
            final_path = self._commit(staging, Path(destination), final_name)
        except Exception:
            self._discard(staging)
            raise
        logger.debug("Stored %s as %s", source_url, final_path)
        return DownloadedImage(
            content_hash=content_hash,
            extension=extension,
            final_name=final_name,
            final_path=str(final_path),
        )

    def _create_staging_file(self) -> Path:
        try:
            if self.staging_dir is not None:
                self.staging_dir.mkdir(parents=True, exist_ok=True)
            handle, name = tempfile.mkstemp(
                prefix="link-embed-", suffix=".part", dir=self.staging_dir
            )
            os.close(handle)
        except OSError as exc:
            raise StorageFailed(f"Unable to create staging file: {exc}") from exc
        return Path(name)

    def _fetch_to(self, source_url: str, staging: Path) -> str:
        """Stream the response body into ``staging`` and return the extension."""
        logger.debug("Downloading image from %s", source_url)
        try:
            with self.session.get(source_url, timeout=self.timeout, stream=True) as resp:
                resp.raise_for_status()
                extension = extension_from_content_type(resp.headers.get("Content-Type"))
                expected = resp.headers.get("Content-Length")
                encoding = (resp.headers.get("Content-Encoding") or "identity").strip().lower()
                if encoding != "identity":
                    # Content-Length counts encoded bytes; iter_content yields decoded ones.
                    expected = None
                written = 0
                with staging.open("wb") as handle:
                    for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                        if not chunk:
                            continue
                        written += len(chunk)
                        if self.max_bytes is not None and written > self.max_bytes:
                            raise DownloadFailed(
                                f"Image at {source_url} is larger than {self.max_bytes} bytes"
                            )
                        handle.write(chunk)
        except requests.RequestException as exc:
            raise DownloadFailed(f"Failed to fetch image {source_url}: {exc}") from exc
        except OSError as exc:
            raise StorageFailed(f"Failed to stage image {source_url}: {exc}") from exc

        if expected and expected.isdigit() and int(expected) != written:
            raise DownloadFailed(
                f"Truncated image from {source_url}: expected {expected} bytes, got {written}"
            )
        return extension

    def _commit(self, staging: Path, destination: Path, final_name: str) -> Path:
        final_path = destination / final_name
        try:
            destination.mkdir(parents=True, exist_ok=True)
            # Same name means same bytes, so overwriting is harmless.
            shutil.move(str(staging), str(final_path))
            os.chmod(final_path, default_file_mode())
        except OSError as exc:
            raise StorageFailed(f"Failed to store image at {final_path}: {exc}") from exc
        return final_path

    @staticmethod
    def _discard(staging: Path) -> None:
        try:
            staging.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Failed to remove staging file %s: %s", staging, exc)
