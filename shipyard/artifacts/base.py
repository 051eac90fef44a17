"""Caching gateway over a remote artifact store.

``ArtifactProvider`` owns every cache: revision listings, downloads and
checksums. Concrete providers implement only the two raw primitives,
``_do_list_artifacts_for_revision`` and ``_do_download_artifact``, and never
cache, de-duplicate or filter on their own.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path

from shipyard.core.checksum import HashAlgorithm, HashFormat, calculate_checksum
from shipyard.core.errors import PublishError
from shipyard.core.filters import FilterOptions, apply_filters
from shipyard.core.result import Err, Ok, Result
from shipyard.core.singleflight import SingleFlight
from shipyard.output.console import ConsoleProtocol, Style

from .model import Artifact, parse_timestamp

__all__ = ["ArtifactProvider", "MAX_DOWNLOAD_CONCURRENCY", "dedupe_latest"]

MAX_DOWNLOAD_CONCURRENCY = 5

type DownloadKey = tuple[str, str, str | None]


def _is_ok(result: Result[Path, PublishError]) -> bool:
    return isinstance(result, Ok)


def dedupe_latest(artifacts: list[Artifact]) -> list[Artifact]:
    """Keep one artifact per filename: the most recently updated one.

    Missing or unparseable timestamps sort as earliest. On ties the later
    entry wins. Filenames keep their first-appearance order.
    """
    latest: dict[str, tuple[float, Artifact]] = {}
    for artifact in artifacts:
        ts = parse_timestamp(artifact.last_updated)
        rank = ts if ts is not None else float("-inf")
        current = latest.get(artifact.filename)
        if current is None or rank >= current[0]:
            latest[artifact.filename] = (rank, artifact)
    return [artifact for _, artifact in latest.values()]


class ArtifactProvider(ABC):
    """Base class for artifact providers.

    Subclasses must implement:
    - _do_list_artifacts_for_revision(): raw listing, Err(kind="not_found")
      when the backend does not know the revision
    - _do_download_artifact(): raw transfer into a directory
    """

    name: str = "base"

    def __init__(
        self,
        *,
        console: ConsoleProtocol,
        download_directory: Path | None = None,
        max_concurrency: int = MAX_DOWNLOAD_CONCURRENCY,
    ) -> None:
        self.console = console
        self.max_concurrency = max(1, max_concurrency)
        self._default_directory: Path | None = download_directory
        self._downloads: SingleFlight[DownloadKey, Result[Path, PublishError]] = SingleFlight(
            keep=_is_ok
        )
        self._listings: dict[str, list[Artifact]] = {}
        self._checksums: dict[tuple[Path, str, str], str] = {}

    @property
    def download_directory(self) -> Path | None:
        return self._default_directory

    def set_download_directory(self, directory: Path | None) -> Result[None, PublishError]:
        if directory is None or not str(directory).strip():
            return Err(
                PublishError(kind="configuration", message="download directory cannot be empty")
            )
        self._default_directory = directory
        return Ok(None)

    def clear_caches(self) -> None:
        self._downloads.clear()
        self._listings.clear()
        self._checksums.clear()

    # -------------------------------------------------------------------------
    # Primitives
    # -------------------------------------------------------------------------

    @abstractmethod
    async def _do_list_artifacts_for_revision(
        self, revision: str
    ) -> Result[list[Artifact], PublishError]: ...

    @abstractmethod
    async def _do_download_artifact(
        self, artifact: Artifact, directory: Path
    ) -> Result[Path, PublishError]: ...

    # -------------------------------------------------------------------------
    # Listing
    # -------------------------------------------------------------------------

    async def list_artifacts_for_revision(
        self, revision: str
    ) -> Result[list[Artifact], PublishError]:
        """List the revision's artifacts, one per filename.

        Successful listings are cached for the provider's lifetime; failures
        are not, so a later call asks the backend again.
        """
        cached = self._listings.get(revision)
        if cached is not None:
            return Ok(list(cached))

        result = await self._do_list_artifacts_for_revision(revision)
        if isinstance(result, Err):
            return result

        deduped = dedupe_latest(result.value)
        self._listings[revision] = deduped
        return Ok(list(deduped))

    async def filter_artifacts_for_revision(
        self,
        revision: str,
        options: FilterOptions | None = None,
    ) -> Result[list[Artifact], PublishError]:
        listed = await self.list_artifacts_for_revision(revision)
        if isinstance(listed, Err):
            return listed
        if options is None or options.is_empty:
            return listed
        return Ok(apply_filters(listed.value, options))

    # -------------------------------------------------------------------------
    # Downloads
    # -------------------------------------------------------------------------

    def _resolve_directory(self, directory: Path | None) -> Result[Path, PublishError]:
        if directory is not None:
            return Ok(directory)
        if self._default_directory is not None:
            return Ok(self._default_directory)
        return Err(
            PublishError(
                kind="configuration",
                message="download directory not configured",
                hint="pass a directory or call set_download_directory()",
            )
        )

    async def download_artifact(
        self,
        artifact: Artifact,
        directory: Path | None = None,
    ) -> Result[Path, PublishError]:
        """Download ``artifact`` once per (directory, filename, last_updated).

        Concurrent callers with the same key share one transfer. A failed
        transfer is forgotten so the next call retries it.
        """
        resolved = self._resolve_directory(directory)
        if isinstance(resolved, Err):
            return resolved
        target_dir = resolved.value

        key: DownloadKey = (str(target_dir), artifact.filename, artifact.last_updated)
        if key in self._downloads:
            self.console.print(f"cached: {artifact.filename}", Style.DIM)

        async def transfer() -> Result[Path, PublishError]:
            try:
                target_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                return Err(PublishError(kind="io", message=f"cannot create {target_dir}: {e}"))
            self.console.print(f"downloading {artifact.filename} -> {target_dir}", Style.DIM)
            return await self._do_download_artifact(artifact, target_dir)

        return await self._downloads.do(key, transfer)

    async def download_artifacts(
        self,
        artifacts: list[Artifact],
        directory: Path | None = None,
    ) -> Result[list[Path], PublishError]:
        """Download several artifacts with at most ``max_concurrency`` in flight.

        Paths are returned in input order; the first failure in input order
        is returned instead if any transfer failed.
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(artifact: Artifact) -> Result[Path, PublishError]:
            async with semaphore:
                return await self.download_artifact(artifact, directory)

        results = await asyncio.gather(*(bounded(a) for a in artifacts))

        paths: list[Path] = []
        for result in results:
            if isinstance(result, Err):
                return result
            paths.append(result.value)
        return Ok(paths)

    async def localize_artifacts(
        self,
        artifacts: list[Artifact],
        directory: Path | None = None,
    ) -> Result[list[Artifact], PublishError]:
        """Like ``download_artifacts`` but returns copies with ``local_path`` set."""
        downloaded = await self.download_artifacts(artifacts, directory)
        if isinstance(downloaded, Err):
            return downloaded
        return Ok(
            [a.with_local_path(p) for a, p in zip(artifacts, downloaded.value, strict=True)]
        )

    # -------------------------------------------------------------------------
    # Checksums
    # -------------------------------------------------------------------------

    async def get_checksum(
        self,
        artifact: Artifact,
        algorithm: HashAlgorithm,
        fmt: HashFormat,
    ) -> Result[str, PublishError]:
        downloaded = await self.download_artifact(artifact)
        if isinstance(downloaded, Err):
            return downloaded
        path = downloaded.value

        key = (path, algorithm, fmt)
        cached = self._checksums.get(key)
        if cached is not None:
            return Ok(cached)

        try:
            digest = calculate_checksum(path, algorithm, fmt)
        except OSError as e:
            return Err(PublishError(kind="io", message=f"cannot hash {path}: {e}"))

        self._checksums[key] = digest
        return Ok(digest)
