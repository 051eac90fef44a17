from __future__ import annotations

from shipyard.cli.context import build_context
from shipyard.output.console import Style


def targets() -> None:
    """List configured publish targets."""
    ctx = build_context()
    if not ctx.config.targets:
        ctx.console.warning("no targets configured")
        return
    for t in ctx.config.targets:
        filters = [f"{k}={v}" for k, v in (("include", t.include), ("exclude", t.exclude)) if v]
        ctx.console.print(t.target_id, Style.BOLD)
        if filters:
            ctx.console.print(f"  {' '.join(filters)}", Style.DIM)
