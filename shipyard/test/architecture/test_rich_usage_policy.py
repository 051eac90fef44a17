from __future__ import annotations

from shipyard.test.architecture._gate import require_arch_checks_enabled
from shipyard.test.architecture._utils import (
    iter_python_files,
    matches_prefix,
    parse_imports,
    shipyard_root,
)


def test_direct_rich_imports_are_limited_to_the_console() -> None:
    require_arch_checks_enabled()

    root = shipyard_root()
    allowlist = {"output/console.py"}

    offenders: list[str] = []
    for file_path in iter_python_files(root):
        rel = file_path.relative_to(root)
        if str(rel) in allowlist:
            continue
        for item in parse_imports(file_path):
            if matches_prefix(item.module, "rich"):
                offenders.append(f"{rel}:{item.line}: direct rich import '{item.module}'")

    assert not offenders, "Direct rich usage policy violations:\n" + "\n".join(offenders)
