"""Digest validation and hashing helpers."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Union

from .errors import DigestValidationError
from .models import HashAlgorithm

# 224, 256, 384 and 512 bit digests.
ALLOWED_DIGEST_SIZES: tuple[int, ...] = (28, 32, 48, 64)

_CHUNK_SIZE = 64 * 1024


def validate_digest(digest: bytes) -> None:
    """Raise :class:`DigestValidationError` unless ``digest`` has an accepted size."""
    if len(digest) not in ALLOWED_DIGEST_SIZES:
        raise DigestValidationError(
            "digest must be exactly 224, 256, 384, or 512 bits. "
            f"{len(digest) * 8} bits found"
        )


def hash_bytes(data: bytes, algorithm: HashAlgorithm = HashAlgorithm.SHA256) -> bytes:
    """Return the raw digest of ``data``."""
    return hashlib.new(algorithm.value, data).digest()


def hash_file(
    path: Union[str, Path],
    algorithm: HashAlgorithm = HashAlgorithm.SHA256,
) -> bytes:
    """Return the raw digest of a file's contents.

    The file is read in chunks, so arbitrarily large files are fine.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
    """
    hasher = hashlib.new(algorithm.value)
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
            hasher.update(chunk)
    return hasher.digest()
