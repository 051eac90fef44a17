"""Artifact retrieval: the caching provider base and concrete backends."""

from .base import MAX_DOWNLOAD_CONCURRENCY, ArtifactProvider, dedupe_latest
from .github import GitHubArtifactProvider
from .model import Artifact, StoredFile, parse_timestamp
from .none import NoneArtifactProvider

__all__ = [
    # base
    "ArtifactProvider",
    "MAX_DOWNLOAD_CONCURRENCY",
    "dedupe_latest",
    # model
    "Artifact",
    "StoredFile",
    "parse_timestamp",
    # providers
    "GitHubArtifactProvider",
    "NoneArtifactProvider",
]
