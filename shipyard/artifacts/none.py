from __future__ import annotations

from pathlib import Path

from shipyard.core.errors import PublishError
from shipyard.core.result import Err, Ok, Result

from .base import ArtifactProvider
from .model import Artifact


class NoneArtifactProvider(ArtifactProvider):
    """Provider for projects that publish without build artifacts.

    Every revision has an empty artifact list; downloads are refused.
    """

    name = "none"

    async def _do_list_artifacts_for_revision(
        self, revision: str
    ) -> Result[list[Artifact], PublishError]:
        return Ok([])

    async def _do_download_artifact(
        self, artifact: Artifact, directory: Path
    ) -> Result[Path, PublishError]:
        return Err(
            PublishError(
                kind="configuration",
                message=f"artifact provider 'none' cannot download {artifact.filename}",
                hint="configure [artifacts] provider = \"github\"",
            )
        )
