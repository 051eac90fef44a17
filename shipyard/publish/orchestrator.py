"""The publish pipeline.

``PublishOrchestrator.run`` drives one release end to end:

1. resolve the revision (explicit, or head of the release branch)
2. wait for CI to succeed on it
3. resolve which targets to publish to
4. check the required artifacts exist
5. publish every target, strictly in configured order
6. merge (and delete) the release branch

Every step returns a ``Result``; the first fatal ``Err`` ends the run.
Reportable errors (failed build, failed target) become warnings in dry-run
mode so the whole pipeline can be previewed.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from shipyard.artifacts.base import ArtifactProvider
from shipyard.core.config import ProjectConfig, TargetConfig
from shipyard.core.credentials import Credentials
from shipyard.core.errors import PublishError, report
from shipyard.core.filters import compile_pattern
from shipyard.core.result import Err, Ok, Result
from shipyard.output.console import ConsoleProtocol, Style
from shipyard.platform.files import make_download_dir, remove_tree
from shipyard.status.base import StatusProvider
from shipyard.targets.base import Target, TargetContext
from shipyard.targets.registry import build_target

from .branches import SourceControl
from .selectors import Selection, resolve_targets

__all__ = ["PublishOrchestrator", "PublishOutcome", "PublishRequest", "TargetFactory"]

type TargetFactory = Callable[
    [TargetConfig, ArtifactProvider, TargetContext], Result[Target, PublishError]
]


@dataclass(frozen=True, slots=True)
class PublishRequest:
    version: str
    revision: str | None = None
    targets: tuple[str, ...] = ()
    skip_status_check: bool = False
    no_merge: bool = False
    keep_branch: bool = False
    keep_downloads: bool = False
    dry_run: bool = False


@dataclass(frozen=True, slots=True)
class PublishOutcome:
    """What a run did.

    ``failed`` only ever holds entries in dry-run mode, where target failures
    are reported as warnings. ``aborted`` is set when a dry run stopped at a
    failed build.
    """

    version: str
    revision: str
    published: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()
    merged: bool = False
    aborted: bool = False
    download_directory: Path | None = None


@dataclass
class _Progress:
    published: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class PublishOrchestrator:
    def __init__(
        self,
        *,
        config: ProjectConfig,
        artifacts: ArtifactProvider,
        status: StatusProvider,
        source_control: SourceControl | None,
        console: ConsoleProtocol,
        workdir: Path,
        credentials: Credentials | None = None,
        target_factory: TargetFactory = build_target,
        download_dir_factory: Callable[[], Path] = make_download_dir,
    ) -> None:
        self.config = config
        self.artifacts = artifacts
        self.status = status
        self.source_control = source_control
        self.console = console
        self.workdir = workdir
        self.credentials = credentials or Credentials()
        self._target_factory = target_factory
        self._download_dir_factory = download_dir_factory

    def release_branch(self, version: str) -> str:
        return f"{self.config.publish.release_branch_prefix}{version}"

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    async def _resolve_revision(self, request: PublishRequest) -> Result[str, PublishError]:
        if request.revision:
            return Ok(request.revision)
        if self.source_control is None:
            return Err(
                PublishError(
                    kind="configuration",
                    message="cannot resolve the release branch without a [github] section",
                    hint="pass --rev explicitly",
                )
            )
        branch = self.release_branch(request.version)
        head = await self.source_control.resolve_branch_head(branch)
        if isinstance(head, Ok):
            self.console.print(f"{branch} is at {head.value}", Style.DIM)
        return head

    async def _check_status(
        self, request: PublishRequest, revision: str
    ) -> Result[bool, PublishError]:
        """Ok(True) to continue, Ok(False) when a dry run stops at a failed build."""
        if request.skip_status_check:
            self.console.warning("skipping the build status check")
            return Ok(True)

        info = await self.status.get_repository_info()
        if isinstance(info, Err):
            return info
        self.console.print(f"status provider: {self.status.name} ({info.value.full_name})", Style.DIM)

        waited = await self.status.wait_for_build_to_succeed(revision)
        if isinstance(waited, Ok):
            return Ok(True)
        if not waited.error.reportable:
            return waited
        reported = report(waited.error, dry_run=request.dry_run, console=self.console)
        if isinstance(reported, Err):
            return reported
        return Ok(False)

    async def _check_required_artifacts(self, revision: str) -> Result[None, PublishError]:
        required = self.config.publish.required_artifacts
        if not required:
            return Ok(None)

        listed = await self.artifacts.list_artifacts_for_revision(revision)
        if isinstance(listed, Err):
            return listed
        names = [a.filename for a in listed.value]

        missing = [p for p in required if not any(compile_pattern(p).search(n) for n in names)]
        if missing:
            return Err(
                PublishError(
                    kind="configuration",
                    message=f"required artifacts missing for revision {revision}: {', '.join(missing)}",
                    hint=f"found: {', '.join(names) or '(none)'}",
                    revision=revision,
                )
            )
        self.console.print(f"required artifacts present ({len(required)} pattern(s))", Style.DIM)
        return Ok(None)

    def _build_targets(
        self, selection: Selection, context: TargetContext
    ) -> Result[list[Target], PublishError]:
        targets: list[Target] = []
        for target_config in selection.targets:
            built = self._target_factory(target_config, self.artifacts, context)
            if isinstance(built, Err):
                return built
            targets.append(built.value)
        return Ok(targets)

    def _target_failed(
        self,
        error: PublishError,
        target: Target,
        remaining: list[Target],
        request: PublishRequest,
        revision: str,
    ) -> PublishError:
        resume = " ".join(f"--target '{t.id}'" for t in remaining)
        return PublishError(
            kind="target_failed",
            message=f"target {target.id} failed: {error.pretty()}",
            hint=f"resume with: shipyard publish {request.version} --rev {revision} {resume}",
            target_id=target.id,
            version=request.version,
            revision=revision,
        )

    async def _publish_targets(
        self,
        targets: list[Target],
        request: PublishRequest,
        revision: str,
        progress: _Progress,
    ) -> Result[None, PublishError]:
        for index, target in enumerate(targets):
            self.console.header(f"publishing to {target.id}")
            result = await target.publish(request.version, revision)
            if isinstance(result, Ok):
                progress.published.append(target.id)
                continue

            error = self._target_failed(result.error, target, targets[index:], request, revision)
            reported = report(error, dry_run=request.dry_run, console=self.console)
            if isinstance(reported, Err):
                return reported
            progress.failed.append(target.id)
        return Ok(None)

    async def _finish_branch(
        self, request: PublishRequest, selection: Selection
    ) -> Result[bool, PublishError]:
        """Merge the release branch when allowed. Ok(True) when merged."""
        if request.revision:
            self.console.info("revision given explicitly, not merging any branch")
            return Ok(False)
        if request.no_merge:
            self.console.info("not merging the release branch (--no-merge)")
            return Ok(False)
        if selection.is_explicit:
            self.console.info(
                "not merging: only some targets were published; run "
                f"`shipyard publish {request.version} --target none` to finish the release"
            )
            return Ok(False)
        if self.source_control is None:
            return Ok(False)

        branch = self.release_branch(request.version)
        merged = await self.source_control.merge_branch(branch)
        if isinstance(merged, Err):
            return merged
        if request.keep_branch:
            self.console.info(f"keeping branch {branch}")
            return Ok(True)
        deleted = await self.source_control.delete_branch(branch)
        if isinstance(deleted, Err):
            return deleted
        return Ok(True)

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    async def run(self, request: PublishRequest) -> Result[PublishOutcome, PublishError]:
        if request.dry_run:
            self.console.warning("[dry-run] no changes will be made")

        revision = await self._resolve_revision(request)
        if isinstance(revision, Err):
            return revision
        rev = revision.value
        self.console.header(f"publishing version {request.version} from {rev}")

        proceed = await self._check_status(request, rev)
        if isinstance(proceed, Err):
            return proceed
        if not proceed.value:
            return Ok(PublishOutcome(version=request.version, revision=rev, aborted=True))

        selection = resolve_targets(request.targets, self.config.targets)
        if isinstance(selection, Err):
            return selection
        if selection.value.mode == "none":
            self.console.info("no targets selected, skipping publishing")

        download_dir = self._download_dir_factory()
        registered = self.artifacts.set_download_directory(download_dir)
        if isinstance(registered, Err):
            return registered

        progress = _Progress()
        try:
            if selection.value.targets:
                required = await self._check_required_artifacts(rev)
                if isinstance(required, Err):
                    return required

            context = TargetContext(
                console=self.console,
                workdir=self.workdir,
                dry_run=request.dry_run,
                credentials=self.credentials,
            )
            targets = self._build_targets(selection.value, context)
            if isinstance(targets, Err):
                return targets

            published = await self._publish_targets(targets.value, request, rev, progress)
            if isinstance(published, Err):
                return published
        finally:
            if request.keep_downloads:
                self.console.info(f"downloads kept in {download_dir}")
            else:
                remove_tree(download_dir)
            # Cached listings and downloads point into this run's directory.
            self.artifacts.clear_caches()

        merged = await self._finish_branch(request, selection.value)
        if isinstance(merged, Err):
            return merged

        self.console.success(f"version {request.version} published")
        return Ok(
            PublishOutcome(
                version=request.version,
                revision=rev,
                published=tuple(progress.published),
                failed=tuple(progress.failed),
                merged=merged.value,
                download_directory=download_dir if request.keep_downloads else None,
            )
        )
