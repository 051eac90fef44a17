"""GitHub Actions artifact provider.

A revision's artifacts are the files inside the zip archives uploaded by the
workflow runs of that commit. Listing downloads and unpacks the matching
archives into a staging directory; ``_do_download_artifact`` then copies a
staged file to its destination.
"""

from __future__ import annotations

import asyncio
import mimetypes
import shutil
import zipfile
from collections.abc import Awaitable, Callable
from pathlib import Path

from shipyard.core.errors import PublishError
from shipyard.core.filters import any_match, compile_pattern
from shipyard.core.result import Err, Ok, Result
from shipyard.core.structured import StrDict, as_str_dict, get_int, get_list, get_str
from shipyard.net.github import GitHubApi
from shipyard.output.console import ConsoleProtocol, Style

from .base import ArtifactProvider
from .model import Artifact, StoredFile

__all__ = ["GitHubArtifactProvider"]

MAX_TRIES = 3
RETRY_DELAY_SECONDS = 10.0
PER_PAGE = 100
STAGING_DIRNAME = ".staging"


class GitHubArtifactProvider(ArtifactProvider):
    name = "github"

    def __init__(
        self,
        *,
        api: GitHubApi,
        console: ConsoleProtocol,
        workflow: str | None = None,
        names: tuple[str, ...] = (),
        download_directory: Path | None = None,
        max_tries: int = MAX_TRIES,
        retry_delay: float = RETRY_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        super().__init__(console=console, download_directory=download_directory)
        self._api = api
        self._workflow = compile_pattern(workflow) if workflow else None
        self._names = [compile_pattern(n) for n in names]
        self._max_tries = max(1, max_tries)
        self._retry_delay = retry_delay
        self._sleep = sleep

    # -------------------------------------------------------------------------
    # GitHub queries
    # -------------------------------------------------------------------------

    async def _paged(self, path: str, field: str) -> Result[list[StrDict], PublishError]:
        items: list[StrDict] = []
        page = 1
        while True:
            sep = "&" if "?" in path else "?"
            obj = await self._api.get(f"{path}{sep}per_page={PER_PAGE}&page={page}")
            if isinstance(obj, Err):
                return obj
            data = as_str_dict(obj.value)
            raw = get_list(data, field) if data is not None else None
            if raw is None:
                return Err(
                    PublishError(kind="backend", message=f"unexpected payload (no '{field}'): {path}")
                )
            for item in raw:
                d = as_str_dict(item)
                if d is not None:
                    items.append(d)
            if len(raw) < PER_PAGE:
                return Ok(items)
            page += 1

    async def _workflow_runs(self, revision: str) -> Result[list[StrDict], PublishError]:
        return await self._paged(
            self._api.repo_path(f"/actions/runs?head_sha={revision}"), "workflow_runs"
        )

    async def _run_artifacts(self, run_id: int) -> Result[list[StrDict], PublishError]:
        return await self._paged(self._api.repo_path(f"/actions/runs/{run_id}/artifacts"), "artifacts")

    def _run_matches(self, run: StrDict) -> bool:
        if self._workflow is None:
            return True
        return bool(self._workflow.search(get_str(run, "name") or ""))

    def _archive_matches(self, item: StrDict) -> bool:
        if item.get("expired") is True:
            return False
        if not self._names:
            return True
        return any_match(self._names, get_str(item, "name") or "")

    async def _matching_archives(self, revision: str) -> Result[list[StrDict] | None, PublishError]:
        """Archives of the revision's matching runs; None if GitHub has no runs."""
        runs = await self._workflow_runs(revision)
        if isinstance(runs, Err):
            return runs
        if not runs.value:
            return Ok(None)

        archives: list[StrDict] = []
        for run in runs.value:
            run_id = get_int(run, "id")
            if run_id is None or not self._run_matches(run):
                continue
            items = await self._run_artifacts(run_id)
            if isinstance(items, Err):
                return items
            archives.extend(a for a in items.value if self._archive_matches(a))
        return Ok(archives)

    # -------------------------------------------------------------------------
    # Archives
    # -------------------------------------------------------------------------

    async def _unpack_archive(
        self, item: StrDict, staging: Path
    ) -> Result[list[Artifact], PublishError]:
        archive_id = get_int(item, "id")
        if archive_id is None:
            return Err(PublishError(kind="backend", message="artifact payload without id"))

        archive = staging / f"{archive_id}.zip"
        self.console.print(f"fetching archive {get_str(item, 'name')} ({archive_id})", Style.DIM)
        downloaded = await self._api.download(
            self._api.repo_path(f"/actions/artifacts/{archive_id}/zip"), archive
        )
        if isinstance(downloaded, Err):
            return downloaded

        out_dir = staging / str(archive_id)
        try:
            with zipfile.ZipFile(archive) as zf:
                zf.extractall(out_dir)
        except (zipfile.BadZipFile, OSError) as e:
            return Err(PublishError(kind="io", message=f"cannot unpack {archive.name}: {e}"))
        finally:
            archive.unlink(missing_ok=True)

        updated = get_str(item, "updated_at")
        artifacts: list[Artifact] = []
        for path in sorted(p for p in out_dir.rglob("*") if p.is_file()):
            mime, _ = mimetypes.guess_type(path.name)
            artifacts.append(
                Artifact(
                    filename=path.name,
                    mime_type=mime,
                    stored_file=StoredFile(
                        download_path=str(path),
                        filename=path.name,
                        size=path.stat().st_size,
                        last_updated=updated,
                    ),
                )
            )
        return Ok(artifacts)

    async def _unpack_all(
        self, archives: list[StrDict], staging: Path
    ) -> Result[list[Artifact], PublishError]:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(item: StrDict) -> Result[list[Artifact], PublishError]:
            async with semaphore:
                return await self._unpack_archive(item, staging)

        results = await asyncio.gather(*(bounded(a) for a in archives))
        artifacts: list[Artifact] = []
        for result in results:
            if isinstance(result, Err):
                return result
            artifacts.extend(result.value)
        return Ok(artifacts)

    # -------------------------------------------------------------------------
    # Primitives
    # -------------------------------------------------------------------------

    async def _do_list_artifacts_for_revision(
        self, revision: str
    ) -> Result[list[Artifact], PublishError]:
        base_dir = self._resolve_directory(None)
        if isinstance(base_dir, Err):
            return base_dir
        staging = base_dir.value / STAGING_DIRNAME / revision
        staging.mkdir(parents=True, exist_ok=True)

        slug = self._api.repo.slug
        archives: list[StrDict] | None = None
        for attempt in range(self._max_tries):
            self.console.print(
                f"fetching GitHub artifacts for {slug}@{revision} "
                f"(attempt {attempt + 1} of {self._max_tries})",
                Style.DIM,
            )
            found = await self._matching_archives(revision)
            if isinstance(found, Err):
                return found
            archives = found.value
            if archives:
                break
            # Runs and their artifacts show up in the API with some delay.
            if attempt + 1 < self._max_tries:
                self.console.print(
                    f"nothing yet, retrying in {self._retry_delay:.0f}s", Style.DIM
                )
                await self._sleep(self._retry_delay)

        if archives is None:
            return Err(
                PublishError(
                    kind="not_found",
                    message=f"no workflow runs found for revision {revision}",
                    hint=f"tries: {self._max_tries}",
                )
            )
        if not archives:
            return Ok([])
        return await self._unpack_all(archives, staging)

    async def _do_download_artifact(
        self, artifact: Artifact, directory: Path
    ) -> Result[Path, PublishError]:
        source = Path(artifact.stored_file.download_path)
        dest = directory / artifact.filename
        try:
            if source.resolve() != dest.resolve():
                shutil.copy2(source, dest)
        except OSError as e:
            return Err(
                PublishError(kind="io", message=f"cannot copy {artifact.filename} to {directory}: {e}")
            )
        return Ok(dest)
