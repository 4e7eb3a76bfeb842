"""Streaming content digests."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import BinaryIO, Iterable, Union

IMAGE_HASH_ALGORITHM = "sha256"
FILE_HASH_ALGORITHM = "sha512"
CHUNK_SIZE = 64 * 1024

Chunks = Union[BinaryIO, Iterable[bytes]]


def hash_stream(source: Chunks, algorithm: str = IMAGE_HASH_ALGORITHM) -> str:
    """Digest a file object or an iterable of byte chunks incrementally."""
    digest = hashlib.new(algorithm)
    if hasattr(source, "read"):
        for chunk in iter(lambda: source.read(CHUNK_SIZE), b""):  # type: ignore[union-attr]
            digest.update(chunk)
    else:
        for chunk in source:
            digest.update(chunk)
    return digest.hexdigest()


def hash_bytes(data: bytes, algorithm: str = IMAGE_HASH_ALGORITHM) -> str:
    return hash_stream([data], algorithm)


def hash_file(path: Path, algorithm: str = FILE_HASH_ALGORITHM) -> str:
    """Digest a file on disk without loading it into memory."""
    with Path(path).open("rb") as handle:
        return hash_stream(handle, algorithm)
