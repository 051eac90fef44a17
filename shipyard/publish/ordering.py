"""Dependency-ordered publishing of interdependent packages."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from shipyard.core.errors import PublishError
from shipyard.core.result import Err, Ok, Result

__all__ = ["Package", "dependency_order"]


@dataclass(frozen=True, slots=True)
class Package:
    name: str
    version: str | None = None
    dependencies: tuple[str, ...] = ()


def dependency_order(packages: Sequence[Package]) -> Result[list[Package], PublishError]:
    """Order packages so every package follows its in-set dependencies.

    Works in passes: each pass emits, in input order, every remaining package
    whose in-set dependencies were all emitted by earlier passes. Dependencies
    on packages outside the set are ignored. A pass that emits nothing means
    the remaining packages form (or depend on) a cycle.

    Returns Err(kind="configuration") on duplicate names or cycles.
    """
    names: set[str] = set()
    for pkg in packages:
        if pkg.name in names:
            return Err(
                PublishError(kind="configuration", message=f"duplicate package name: {pkg.name}")
            )
        names.add(pkg.name)

    if len(packages) <= 1:
        return Ok(list(packages))

    ordered: list[Package] = []
    emitted: set[str] = set()
    remaining = list(packages)
    while remaining:
        ready = [
            p for p in remaining if all(d in emitted or d not in names for d in p.dependencies)
        ]
        if not ready:
            stuck = ", ".join(p.name for p in remaining)
            return Err(
                PublishError(
                    kind="configuration",
                    message=f"circular dependency between packages: {stuck}",
                    hint="remove one of the dependencies to break the cycle",
                )
            )
        # Emit after the scan so a pass never sees its own output.
        ordered.extend(ready)
        emitted.update(p.name for p in ready)
        remaining = [p for p in remaining if p.name not in emitted]
    return Ok(ordered)
