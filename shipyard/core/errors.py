"""Error payloads and process exit codes.

``PublishError`` is the single error value flowing through the publish
pipeline. Its ``kind`` decides how the orchestrator and the CLI treat it:
configuration errors are never retried, ``build_failed`` and ``target_failed``
are reportable (downgraded to warnings in dry-run mode), everything else is
fatal.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Literal

from .result import Err, Ok, Result

if TYPE_CHECKING:
    from shipyard.output.console import ConsoleProtocol

__all__ = ["ErrorCode", "ErrorKind", "PublishError", "report", "REPORTABLE_KINDS"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    Any reported error maps to 1 so wrapping CI jobs only need to test for
    non-zero. Usage errors raised by the argument parser keep Click's 2.
    """

    OK = 0
    FAILURE = 1

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK


ErrorKind = Literal[
    "configuration",
    "not_found",
    "timeout",
    "build_failed",
    "target_failed",
    "backend",
    "process",
    "io",
]

REPORTABLE_KINDS: frozenset[str] = frozenset({"build_failed", "target_failed"})


@dataclass(frozen=True, slots=True)
class PublishError:
    """Canonical error payload.

    Target failures additionally carry the target id, version and revision so
    the operator can resume with a narrowed ``--target`` selector.
    """

    kind: ErrorKind
    message: str
    hint: str | None = None
    target_id: str | None = None
    version: str | None = None
    revision: str | None = None

    @property
    def reportable(self) -> bool:
        return self.kind in REPORTABLE_KINDS

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message


def report(
    error: PublishError,
    *,
    dry_run: bool,
    console: ConsoleProtocol,
) -> Result[None, PublishError]:
    """Surface a reportable error.

    In dry-run mode the error becomes a ``[dry-run]`` warning and ``Ok(None)``
    is returned so the preview can continue. Otherwise the error is returned
    unchanged.
    """
    if dry_run:
        console.warning(f"[dry-run] {error.pretty()}")
        return Ok(None)
    return Err(error)
