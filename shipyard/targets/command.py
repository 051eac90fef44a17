from __future__ import annotations

from shipyard.artifacts.base import ArtifactProvider
from shipyard.core.config import CommandPayload, TargetConfig
from shipyard.core.errors import PublishError
from shipyard.core.result import Err, Ok, Result

from .base import Target, TargetContext, expand_command


class CommandTarget(Target):
    """Run a command once per matched artifact.

    Placeholders: ``{path}``, ``{filename}``, ``{version}``, ``{revision}``.
    """

    name = "command"

    def __init__(
        self,
        config: TargetConfig,
        payload: CommandPayload,
        provider: ArtifactProvider,
        context: TargetContext,
    ) -> None:
        super().__init__(config, provider, context)
        self.payload = payload

    async def publish(self, version: str, revision: str) -> Result[None, PublishError]:
        listed = await self.get_artifacts_for_revision(revision)
        if isinstance(listed, Err):
            return listed
        artifacts = listed.value

        if not artifacts:
            if self.payload.allow_empty:
                self.console.info(f"{self.id}: no matching artifacts, nothing to do")
                return Ok(None)
            return Err(
                self.failure(
                    f"no artifacts matched for revision {revision}",
                    hint="check the target's include/exclude patterns",
                )
            )

        local = await self.provider.localize_artifacts(artifacts)
        if isinstance(local, Err):
            return local

        for artifact in local.value:
            argv = expand_command(
                self.payload.command,
                path=str(artifact.local_path),
                filename=artifact.filename,
                version=version,
                revision=revision,
            )
            result = await self.run_command(argv)
            if isinstance(result, Err):
                return result

        self.console.success(f"{self.id}: {len(artifacts)} artifact(s) published")
        return Ok(None)
