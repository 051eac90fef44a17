"""Tests for shipyard.core.checksum module."""

from __future__ import annotations

import base64
import hashlib
from pathlib import Path

import pytest

from shipyard.core.checksum import HASH_ALGORITHMS, HASH_FORMATS, calculate_checksum


class TestCalculateChecksum:
    def test_sha256_hex(self, tmp_path: Path) -> None:
        path = tmp_path / "a.bin"
        path.write_bytes(b"hello")
        assert calculate_checksum(path, "sha256", "hex") == hashlib.sha256(b"hello").hexdigest()

    def test_sha512_base64(self, tmp_path: Path) -> None:
        path = tmp_path / "a.bin"
        path.write_bytes(b"hello")
        expected = base64.b64encode(hashlib.sha512(b"hello").digest()).decode("ascii")
        assert calculate_checksum(path, "sha512", "base64") == expected

    def test_large_file_is_chunked(self, tmp_path: Path) -> None:
        data = b"x" * (3 * 1024 * 1024 + 17)
        path = tmp_path / "big.bin"
        path.write_bytes(data)
        assert calculate_checksum(path, "sha384", "hex") == hashlib.sha384(data).hexdigest()

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            calculate_checksum(tmp_path / "nope", "sha256", "hex")


def test_supported_values() -> None:
    assert HASH_ALGORITHMS == ("sha256", "sha384", "sha512")
    assert HASH_FORMATS == ("hex", "base64")
