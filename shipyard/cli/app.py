from __future__ import annotations

import os
from pathlib import Path

import typer

from shipyard import __version__
from shipyard.cli.commands.artifacts import artifacts_app
from shipyard.cli.commands.publish import publish
from shipyard.cli.commands.targets import targets
from shipyard.cli.context import CONFIG_ENV_VAR
from shipyard.core.errors import ErrorCode


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Publish built revisions to their release targets.",
)


# Commands
app.command()(publish)
app.command()(targets)

# Sub-apps
app.add_typer(artifacts_app, name="artifacts")


def _show_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        callback=_show_version,
        is_eager=True,
        help="Show version and exit.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to the project config (default: ./.shipyard.toml)",
    ),
) -> None:
    if config is not None:
        path = config.expanduser()
        if not path.is_file():
            typer.echo(f"error: --config '{path}' does not exist", err=True)
            raise typer.Exit(code=int(ErrorCode.FAILURE))
        os.environ[CONFIG_ENV_VAR] = str(path.resolve())


def main() -> None:
    app()
