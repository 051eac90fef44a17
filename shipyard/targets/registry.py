"""Target construction from configuration."""

from __future__ import annotations

from shipyard.artifacts.base import ArtifactProvider
from shipyard.core.config import ChecksumsPayload, CommandPayload, TargetConfig, WorkspacePayload
from shipyard.core.errors import PublishError
from shipyard.core.filters import PatternError
from shipyard.core.result import Err, Ok, Result

from .base import Target, TargetContext
from .checksums import ChecksumsTarget
from .command import CommandTarget
from .workspace import WorkspaceTarget

__all__ = ["build_target"]


def build_target(
    config: TargetConfig,
    provider: ArtifactProvider,
    context: TargetContext,
) -> Result[Target, PublishError]:
    """Instantiate the target class matching ``config.payload``."""
    try:
        match config.payload:
            case CommandPayload() as payload:
                return Ok(CommandTarget(config, payload, provider, context))
            case WorkspacePayload() as payload:
                return Ok(WorkspaceTarget(config, payload, provider, context))
            case ChecksumsPayload() as payload:
                return Ok(ChecksumsTarget(config, payload, provider, context))
    except PatternError as e:
        return Err(
            PublishError(
                kind="configuration",
                message=f"target {config.target_id}: {e}",
                target_id=config.target_id,
            )
        )
