"""Shared helpers for CLI commands."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import NoReturn

import typer

from shipyard.core.errors import ErrorCode, PublishError
from shipyard.core.result import Err, Result
from shipyard.output.console import ConsoleProtocol, Style


def exit_on_error[T](result: Result[T, PublishError], console: ConsoleProtocol) -> T:
    """Return the Ok value, or print the error and exit with FAILURE.

    Replaces the common pattern:
        match result:
            case Err(e):
                console.error(e.message)
                if e.hint:
                    console.print(f"hint: {e.hint}", Style.DIM)
                raise typer.Exit(code=1)
            case Ok(value):
                ...
    """
    if isinstance(result, Err):
        error = result.error
        console.error(error.message)
        if error.hint:
            console.print(f"hint: {error.hint}", Style.DIM)
        exit_with_code(int(ErrorCode.FAILURE))
    return result.value


def run_async[T](coro: Coroutine[object, object, T]) -> T:
    """Run a command coroutine on a fresh event loop."""
    return asyncio.run(coro)


def exit_with_code(code: int) -> NoReturn:
    """Exit with given code. Explicit helper for clarity."""
    raise typer.Exit(code=code)
