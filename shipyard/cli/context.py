from __future__ import annotations

import os
from contextlib import AsyncExitStack
from dataclasses import dataclass
from pathlib import Path

import typer

from shipyard.artifacts.base import ArtifactProvider
from shipyard.artifacts.github import GitHubArtifactProvider
from shipyard.artifacts.none import NoneArtifactProvider
from shipyard.core.config import CONFIG_FILENAME, ProjectConfig, load_config
from shipyard.core.credentials import TOKEN_ENV_VARS, Credentials, resolve_credentials
from shipyard.core.errors import ErrorCode, PublishError
from shipyard.core.result import Err, Ok, Result
from shipyard.net.github import GitHubApi, github_http_client
from shipyard.output.console import ConsoleProtocol, RichConsole
from shipyard.publish.branches import GitHubSourceControl
from shipyard.status.base import StatusProvider
from shipyard.status.github import GitHubStatusProvider
from shipyard.status.none import NoneStatusProvider

CONFIG_ENV_VAR = "SHIPYARD_CONFIG"


def config_path() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if override:
        return Path(override)
    return Path.cwd() / CONFIG_FILENAME


@dataclass(frozen=True, slots=True)
class CLIContext:
    root: Path
    config: ProjectConfig
    credentials: Credentials
    console: ConsoleProtocol


@dataclass(frozen=True, slots=True)
class Backends:
    """Providers wired from the config for one command run."""

    artifacts: ArtifactProvider
    status: StatusProvider
    source_control: GitHubSourceControl | None


def build_context() -> CLIContext:
    path = config_path()
    console = RichConsole()
    result = load_config(path)
    if isinstance(result, Err):
        console.error(result.error.message)
        raise typer.Exit(code=int(ErrorCode.FAILURE))

    return CLIContext(
        root=path.parent.resolve(),
        config=result.value,
        credentials=resolve_credentials(os.environ),
        console=console,
    )


def _github_api(
    ctx: CLIContext, stack: AsyncExitStack
) -> Result[GitHubApi | None, PublishError]:
    github = ctx.config.github
    if github is None:
        return Ok(None)
    if not ctx.credentials.github_token:
        return Err(
            PublishError(
                kind="configuration",
                message=f"GitHub access to {github.slug} needs a token",
                hint=f"set one of: {', '.join(TOKEN_ENV_VARS)}",
            )
        )
    http = github_http_client(ctx.credentials)
    stack.push_async_callback(http.aclose)
    return Ok(GitHubApi(http, github))


def build_backends(
    ctx: CLIContext,
    stack: AsyncExitStack,
    *,
    dry_run: bool = False,
) -> Result[Backends, PublishError]:
    """Instantiate the configured providers.

    HTTP clients are registered on ``stack`` and closed with it.
    """
    api = _github_api(ctx, stack)
    if isinstance(api, Err):
        return api
    gh = api.value
    cfg = ctx.config

    artifacts: ArtifactProvider
    if cfg.artifacts.provider == "github" and gh is not None:
        artifacts = GitHubArtifactProvider(
            api=gh,
            console=ctx.console,
            workflow=cfg.artifacts.workflow,
            names=cfg.artifacts.names,
        )
    else:
        artifacts = NoneArtifactProvider(console=ctx.console)

    status: StatusProvider
    if cfg.status.provider == "github" and gh is not None:
        status = GitHubStatusProvider(
            api=gh,
            console=ctx.console,
            contexts=cfg.status.contexts,
            poll_interval=cfg.publish.poll_interval,
            build_timeout=cfg.publish.build_timeout,
            lookup_timeout=cfg.publish.lookup_timeout,
        )
    else:
        status = NoneStatusProvider(console=ctx.console)

    source_control = GitHubSourceControl(gh, ctx.console, dry_run=dry_run) if gh else None
    return Ok(Backends(artifacts=artifacts, status=status, source_control=source_control))
