from __future__ import annotations

from contextlib import AsyncExitStack

import typer

from shipyard.cli.commands._helpers import exit_on_error, run_async
from shipyard.cli.context import CLIContext, build_backends, build_context
from shipyard.core.errors import PublishError
from shipyard.core.result import Err, Result
from shipyard.publish.orchestrator import PublishOrchestrator, PublishOutcome, PublishRequest


async def _publish(ctx: CLIContext, request: PublishRequest) -> Result[PublishOutcome, PublishError]:
    async with AsyncExitStack() as stack:
        backends = build_backends(ctx, stack, dry_run=request.dry_run)
        if isinstance(backends, Err):
            return backends
        orchestrator = PublishOrchestrator(
            config=ctx.config,
            artifacts=backends.value.artifacts,
            status=backends.value.status,
            source_control=backends.value.source_control,
            console=ctx.console,
            workdir=ctx.root,
            credentials=ctx.credentials,
        )
        return await orchestrator.run(request)


def publish(
    version: str = typer.Argument(..., help="Version to publish (e.g. 1.4.0)"),
    rev: str | None = typer.Option(
        None, "--rev", "-r", help="Source revision (default: head of the release branch)"
    ),
    target: list[str] = typer.Option(
        [], "--target", "-t", help="Target id or name to publish to; 'all' or 'none' (repeatable)"
    ),
    no_status_check: bool = typer.Option(
        False, "--no-status-check", help="Do not wait for CI to succeed"
    ),
    no_merge: bool = typer.Option(False, "--no-merge", help="Do not merge the release branch"),
    keep_branch: bool = typer.Option(
        False, "--keep-branch", help="Do not delete the release branch after merging"
    ),
    keep_downloads: bool = typer.Option(
        False, "--keep-downloads", help="Keep the temporary download directory"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be done"),
) -> None:
    """Publish a version to the configured targets."""
    ctx = build_context()
    request = PublishRequest(
        version=version.strip(),
        revision=rev.strip() if rev else None,
        targets=tuple(target),
        skip_status_check=no_status_check,
        no_merge=no_merge,
        keep_branch=keep_branch,
        keep_downloads=keep_downloads,
        dry_run=dry_run,
    )
    outcome = exit_on_error(run_async(_publish(ctx, request)), ctx.console)
    if outcome.failed:
        ctx.console.warning(f"[dry-run] targets that would fail: {', '.join(outcome.failed)}")
