from __future__ import annotations

from contextlib import AsyncExitStack
from pathlib import Path

import typer

from shipyard.artifacts.model import Artifact
from shipyard.cli.commands._helpers import exit_on_error, run_async
from shipyard.cli.context import CLIContext, build_backends, build_context
from shipyard.core.errors import PublishError
from shipyard.core.filters import FilterOptions, PatternError
from shipyard.core.result import Err, Ok, Result
from shipyard.output.console import Style
from shipyard.platform.files import make_download_dir, remove_tree

artifacts_app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Inspect and fetch a revision's build artifacts.",
)


def _filters(name: str | None) -> Result[FilterOptions, PublishError]:
    try:
        return Ok(FilterOptions.from_strings(name, None))
    except PatternError as e:
        return Err(PublishError(kind="configuration", message=f"--name: {e}"))


def _scratch_dir(stack: AsyncExitStack) -> Path:
    """Temporary directory for staged downloads, removed when ``stack`` closes."""
    path = make_download_dir()
    stack.callback(remove_tree, path)
    return path


async def _list(ctx: CLIContext, rev: str) -> Result[list[Artifact], PublishError]:
    async with AsyncExitStack() as stack:
        backends = build_backends(ctx, stack)
        if isinstance(backends, Err):
            return backends
        provider = backends.value.artifacts
        registered = provider.set_download_directory(_scratch_dir(stack))
        if isinstance(registered, Err):
            return registered
        return await provider.list_artifacts_for_revision(rev)


async def _download(
    ctx: CLIContext, rev: str, options: FilterOptions, directory: Path
) -> Result[list[Path], PublishError]:
    async with AsyncExitStack() as stack:
        backends = build_backends(ctx, stack)
        if isinstance(backends, Err):
            return backends
        provider = backends.value.artifacts
        registered = provider.set_download_directory(_scratch_dir(stack))
        if isinstance(registered, Err):
            return registered
        matched = await provider.filter_artifacts_for_revision(rev, options)
        if isinstance(matched, Err):
            return matched
        if not matched.value:
            return Err(
                PublishError(kind="not_found", message=f"no matching artifacts for revision {rev}")
            )
        return await provider.download_artifacts(matched.value, directory)


@artifacts_app.command("list")
def list_cmd(
    rev: str = typer.Option(..., "--rev", "-r", help="Source revision"),
) -> None:
    """List a revision's artifacts (latest per filename)."""
    ctx = build_context()
    listed = exit_on_error(run_async(_list(ctx, rev)), ctx.console)
    if not listed:
        ctx.console.warning(f"no artifacts for revision {rev}")
        return
    for artifact in listed:
        size = artifact.stored_file.size
        updated = artifact.last_updated or "-"
        ctx.console.print(f"{artifact.filename}  {size} bytes  {updated}")


@artifacts_app.command("download")
def download_cmd(
    rev: str = typer.Option(..., "--rev", "-r", help="Source revision"),
    name: str | None = typer.Option(
        None, "--name", "-n", help="Filename pattern: exact, glob, or /regex/flags"
    ),
    directory: Path = typer.Option(Path("."), "--dir", "-d", help="Destination directory"),
) -> None:
    """Download a revision's artifacts into a directory."""
    ctx = build_context()
    options = exit_on_error(_filters(name), ctx.console)
    dest = directory.expanduser().resolve()
    paths = exit_on_error(run_async(_download(ctx, rev, options, dest)), ctx.console)
    for path in paths:
        ctx.console.success(str(path))
    ctx.console.print(f"{len(paths)} file(s) in {dest}", Style.DIM)
