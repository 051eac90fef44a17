"""Tests for the publish and targets commands, called directly."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
import typer

from shipyard.cli.context import CLIContext
from shipyard.core.config import CommandPayload, GitHubConfig, ProjectConfig, TargetConfig
from shipyard.core.credentials import Credentials
from shipyard.core.errors import ErrorCode
from shipyard.output.console import MockConsole


def _ctx(tmp_path: Path, config: ProjectConfig) -> CLIContext:
    return CLIContext(
        root=tmp_path,
        config=config,
        credentials=Credentials(),
        console=MockConsole(),
    )


def _console(ctx: CLIContext) -> MockConsole:
    assert isinstance(ctx.console, MockConsole)
    return ctx.console


def _run_publish(*, rev: str | None, target: list[str] | None = None, dry_run: bool = False) -> None:
    import shipyard.cli.commands.publish as publish_cmd

    publish_cmd.publish(
        version="1.0.0",
        rev=rev,
        target=target or [],
        no_status_check=False,
        no_merge=False,
        keep_branch=False,
        keep_downloads=False,
        dry_run=dry_run,
    )


def test_publish_with_local_providers(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import shipyard.cli.commands.publish as publish_cmd

    script = "import sys; open('published.txt', 'w').write(sys.argv[1])"
    config = ProjectConfig(
        targets=(
            TargetConfig(
                name="command",
                payload=CommandPayload(
                    command=(sys.executable, "-c", script, "{version}"), allow_empty=True
                ),
            ),
        )
    )
    ctx = _ctx(tmp_path, config)
    monkeypatch.setattr(publish_cmd, "build_context", lambda: ctx)

    _run_publish(rev="abc123")

    console = _console(ctx)
    assert console.find("version 1.0.0 published")
    assert console.find("nothing to do")


def test_publish_without_github_needs_rev(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import shipyard.cli.commands.publish as publish_cmd

    ctx = _ctx(tmp_path, ProjectConfig())
    monkeypatch.setattr(publish_cmd, "build_context", lambda: ctx)

    with pytest.raises(typer.Exit) as exc:
        _run_publish(rev=None)

    assert exc.value.exit_code == int(ErrorCode.FAILURE)
    assert _console(ctx).find("hint: pass --rev explicitly")


def test_publish_github_without_token(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import shipyard.cli.commands.publish as publish_cmd

    ctx = _ctx(tmp_path, ProjectConfig(github=GitHubConfig(owner="acme", repo="widget")))
    monkeypatch.setattr(publish_cmd, "build_context", lambda: ctx)

    with pytest.raises(typer.Exit):
        _run_publish(rev="abc123")

    assert _console(ctx).find("needs a token")


def test_targets_warns_when_empty(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import shipyard.cli.commands.targets as targets_cmd

    ctx = _ctx(tmp_path, ProjectConfig())
    monkeypatch.setattr(targets_cmd, "build_context", lambda: ctx)

    targets_cmd.targets()

    assert _console(ctx).has_warning()
