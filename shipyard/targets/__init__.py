"""Publish targets and their construction from configuration."""

from .base import Target, TargetContext, expand_command
from .checksums import ChecksumsTarget
from .command import CommandTarget
from .registry import build_target
from .workspace import WorkspaceTarget

__all__ = [
    "ChecksumsTarget",
    "CommandTarget",
    "Target",
    "TargetContext",
    "WorkspaceTarget",
    "build_target",
    "expand_command",
]
