"""Target selection from ``--target`` values."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from shipyard.core.config import TargetConfig
from shipyard.core.errors import PublishError
from shipyard.core.result import Err, Ok, Result

__all__ = ["ALL", "NONE", "Selection", "resolve_targets"]

ALL = "all"
NONE = "none"

SelectionMode = Literal["all", "none", "explicit"]


@dataclass(frozen=True, slots=True)
class Selection:
    mode: SelectionMode
    targets: tuple[TargetConfig, ...]

    @property
    def is_explicit(self) -> bool:
        return self.mode == "explicit"


def resolve_targets(
    selectors: Sequence[str],
    configured: Sequence[TargetConfig],
) -> Result[Selection, PublishError]:
    """Resolve selectors against the configured targets.

    No selector means ``all``. ``all`` and ``none`` cannot be combined with
    anything else. An explicit selector matches a target id (``npm[core]``)
    or a target name (``npm``, which selects every target of that kind).
    Selected targets keep their configured order.
    """
    wanted = [s.strip() for s in selectors if s.strip()] or [ALL]
    specials = {ALL, NONE} & set(wanted)
    if specials and len(wanted) > 1:
        special = sorted(specials)[0]
        return Err(
            PublishError(
                kind="configuration",
                message=f"target selector '{special}' cannot be combined with other targets",
                hint=f"got: {', '.join(wanted)}",
            )
        )

    if wanted == [ALL]:
        return Ok(Selection(mode="all", targets=tuple(configured)))
    if wanted == [NONE]:
        return Ok(Selection(mode="none", targets=()))

    known = ", ".join(t.target_id for t in configured) or "(none)"
    for selector in wanted:
        if not any(selector in (t.target_id, t.name) for t in configured):
            return Err(
                PublishError(
                    kind="configuration",
                    message=f"unknown target: {selector}",
                    hint=f"configured targets: {known}",
                )
            )

    chosen = tuple(t for t in configured if t.target_id in wanted or t.name in wanted)
    return Ok(Selection(mode="explicit", targets=chosen))
