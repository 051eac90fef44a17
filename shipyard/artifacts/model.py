from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from pathlib import Path

__all__ = ["Artifact", "StoredFile", "parse_timestamp"]


@dataclass(frozen=True, slots=True)
class StoredFile:
    """Where the provider keeps an artifact's bytes."""

    download_path: str  # remote URL/path, or a staged local file
    filename: str
    size: int
    last_updated: str | None = None  # ISO-8601, as reported by the backend


@dataclass(frozen=True, slots=True)
class Artifact:
    """A named build output of a revision. ``filename`` is its identity."""

    filename: str
    stored_file: StoredFile
    mime_type: str | None = None
    local_path: Path | None = None

    @property
    def last_updated(self) -> str | None:
        return self.stored_file.last_updated

    def with_local_path(self, path: Path) -> Artifact:
        return replace(self, local_path=path)


def parse_timestamp(value: str | None) -> float | None:
    """Parse an ISO-8601 timestamp to epoch seconds.

    Naive timestamps are read as UTC. Returns None when missing or unparseable.
    """
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.timestamp()
