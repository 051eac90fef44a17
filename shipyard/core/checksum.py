"""File digests in the formats release targets publish."""

from __future__ import annotations

import base64
import hashlib
from pathlib import Path
from typing import Literal, get_args

__all__ = ["HashAlgorithm", "HashFormat", "HASH_ALGORITHMS", "HASH_FORMATS", "calculate_checksum"]

HashAlgorithm = Literal["sha256", "sha384", "sha512"]
HashFormat = Literal["hex", "base64"]

HASH_ALGORITHMS: tuple[str, ...] = get_args(HashAlgorithm)
HASH_FORMATS: tuple[str, ...] = get_args(HashFormat)

_CHUNK_SIZE = 1024 * 1024


def calculate_checksum(path: Path, algorithm: HashAlgorithm, fmt: HashFormat) -> str:
    """Hash ``path`` in chunks and render the digest as hex or base64."""
    h = hashlib.new(algorithm)
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            h.update(chunk)

    if fmt == "base64":
        return base64.b64encode(h.digest()).decode("ascii")
    return h.hexdigest()
