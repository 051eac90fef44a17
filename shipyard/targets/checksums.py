from __future__ import annotations

import asyncio

from shipyard.artifacts.base import ArtifactProvider
from shipyard.artifacts.model import Artifact
from shipyard.core.checksum import HashAlgorithm
from shipyard.core.config import ChecksumsPayload, TargetConfig
from shipyard.core.errors import PublishError
from shipyard.core.result import Err, Ok, Result
from shipyard.output.console import Style
from shipyard.platform.files import atomic_write_text

from .base import Target, TargetContext


class ChecksumsTarget(Target):
    """Write a checksum manifest for the matched artifacts.

    Lines follow the ``sha256sum`` layout: ``<digest>  <filename>``. With more
    than one algorithm each block starts with a ``# <algorithm>`` line.
    """

    name = "checksums"

    def __init__(
        self,
        config: TargetConfig,
        payload: ChecksumsPayload,
        provider: ArtifactProvider,
        context: TargetContext,
    ) -> None:
        super().__init__(config, provider, context)
        self.payload = payload
        self.output = context.workdir / payload.output

    async def _digests(self, artifacts: list[Artifact]) -> Result[list[str], PublishError]:
        semaphore = asyncio.Semaphore(self.provider.max_concurrency)
        grouped = len(self.payload.algorithms) > 1

        async def digest(artifact: Artifact, algorithm: HashAlgorithm) -> Result[str, PublishError]:
            async with semaphore:
                return await self.provider.get_checksum(artifact, algorithm, self.payload.format)

        lines: list[str] = []
        for algorithm in self.payload.algorithms:
            results = await asyncio.gather(*(digest(a, algorithm) for a in artifacts))
            if grouped:
                lines.append(f"# {algorithm}")
            for artifact, result in zip(artifacts, results, strict=True):
                if isinstance(result, Err):
                    return result
                lines.append(f"{result.value}  {artifact.filename}")
        return Ok(lines)

    async def publish(self, version: str, revision: str) -> Result[None, PublishError]:
        listed = await self.get_artifacts_for_revision(revision)
        if isinstance(listed, Err):
            return listed
        artifacts = sorted(listed.value, key=lambda a: a.filename)
        if not artifacts:
            return Err(self.failure(f"no artifacts to checksum for revision {revision}"))

        lines = await self._digests(artifacts)
        if isinstance(lines, Err):
            return lines
        content = "\n".join(lines.value) + "\n"

        if self.dry_run:
            self.console.print(f"[dry-run] would write {self.output}:", Style.DIM)
            for line in lines.value:
                self.console.print(f"  {line}", Style.DIM)
            return Ok(None)

        try:
            atomic_write_text(self.output, content)
        except OSError as e:
            return Err(self.failure(f"cannot write {self.output}: {e}"))
        self.console.success(f"{self.id}: wrote {self.output} ({len(artifacts)} artifact(s))")
        return Ok(None)
