from __future__ import annotations

from shipyard.artifacts.base import ArtifactProvider
from shipyard.core.config import TargetConfig, WorkspacePayload
from shipyard.core.errors import PublishError
from shipyard.core.result import Err, Ok, Result
from shipyard.output.console import Style
from shipyard.publish.ordering import Package, dependency_order

from .base import Target, TargetContext, expand_command


class WorkspaceTarget(Target):
    """Publish interdependent packages, dependencies first.

    The command runs once per package with ``{name}``, ``{version}`` and
    ``{revision}`` substituted. A package without its own version is
    published under the release version.
    """

    name = "workspace"

    def __init__(
        self,
        config: TargetConfig,
        payload: WorkspacePayload,
        provider: ArtifactProvider,
        context: TargetContext,
    ) -> None:
        super().__init__(config, provider, context)
        self.payload = payload
        self.packages = [
            Package(name=p.name, version=p.version, dependencies=p.dependencies)
            for p in payload.packages
        ]

    async def publish(self, version: str, revision: str) -> Result[None, PublishError]:
        ordered = dependency_order(self.packages)
        if isinstance(ordered, Err):
            return ordered

        self.console.print(
            f"{self.id}: order {' -> '.join(p.name for p in ordered.value)}", Style.DIM
        )
        for pkg in ordered.value:
            argv = expand_command(
                self.payload.command,
                name=pkg.name,
                version=pkg.version or version,
                revision=revision,
            )
            result = await self.run_command(argv)
            if isinstance(result, Err):
                error = result.error
                return Err(self.failure(f"{pkg.name}: {error.message}", hint=error.hint))

        self.console.success(f"{self.id}: {len(ordered.value)} package(s) published")
        return Ok(None)
