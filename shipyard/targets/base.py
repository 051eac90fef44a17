"""Publish targets.

A target pushes a revision's artifacts to one destination. Every target is
built from its ``TargetConfig`` and shares the run's artifact provider; the
only operation a concrete target implements is ``publish``.
"""

from __future__ import annotations

import os
import shlex
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar

from shipyard.artifacts.base import ArtifactProvider
from shipyard.artifacts.model import Artifact
from shipyard.core.config import TargetConfig
from shipyard.core.credentials import Credentials
from shipyard.core.errors import PublishError
from shipyard.core.filters import FilterOptions
from shipyard.core.result import Err, Ok, Result
from shipyard.output.console import ConsoleProtocol, Style
from shipyard.platform.process import run

__all__ = ["Target", "TargetContext", "expand_command"]


@dataclass(frozen=True, slots=True)
class TargetContext:
    """Run-wide settings handed to every target."""

    console: ConsoleProtocol
    workdir: Path
    dry_run: bool = False
    credentials: Credentials = field(default_factory=Credentials)

    def child_env(self) -> dict[str, str]:
        return {**os.environ, **self.credentials.child_env()}


def expand_command(template: Iterable[str], **values: str) -> list[str]:
    """Substitute ``{key}`` placeholders in every argv element.

    Unknown placeholders are left as-is.
    """
    argv: list[str] = []
    for arg in template:
        for key, value in values.items():
            arg = arg.replace("{" + key + "}", value)
        argv.append(arg)
    return argv


class Target:
    """Base class for publish targets.

    Subclasses must implement:
    - publish(): push the revision's artifacts for ``version``
    """

    name: ClassVar[str] = "base"

    def __init__(
        self,
        config: TargetConfig,
        provider: ArtifactProvider,
        context: TargetContext,
    ) -> None:
        self.config = config
        self.provider = provider
        self.context = context
        self.filter_options = FilterOptions.from_strings(config.include, config.exclude)

    @property
    def id(self) -> str:
        return self.config.target_id

    @property
    def console(self) -> ConsoleProtocol:
        return self.context.console

    @property
    def dry_run(self) -> bool:
        return self.context.dry_run

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.id!r})"

    async def get_artifacts_for_revision(
        self,
        revision: str,
        default_filter: FilterOptions | None = None,
    ) -> Result[list[Artifact], PublishError]:
        """The revision's artifacts after this target's filters.

        Filters from the target config win over ``default_filter`` field by
        field.
        """
        options = self.filter_options.over(default_filter or FilterOptions())
        return await self.provider.filter_artifacts_for_revision(revision, options)

    async def publish(self, version: str, revision: str) -> Result[None, PublishError]:
        raise NotImplementedError(f"{type(self).__name__} must implement publish()")

    def failure(self, message: str, *, hint: str | None = None) -> PublishError:
        return PublishError(kind="target_failed", message=message, hint=hint, target_id=self.id)

    async def run_command(self, argv: list[str]) -> Result[None, PublishError]:
        """Run one external command in the run's working directory.

        In dry-run mode the command is only printed.
        """
        shown = shlex.join(argv)
        if self.dry_run:
            self.console.print(f"[dry-run] would run: {shown}", Style.DIM)
            return Ok(None)

        self.console.print(f"$ {shown}", Style.DIM)
        result = await run(argv, cwd=self.context.workdir, env=self.context.child_env())
        if isinstance(result, Err):
            error = result.error
            lines = error.stderr.strip().splitlines()
            return Err(self.failure(str(error), hint=lines[-1] if lines else None))
        return Ok(None)
