from __future__ import annotations

from pathlib import Path

import pytest

from shipyard.artifacts.none import NoneArtifactProvider
from shipyard.core.config import (
    ChecksumsPayload,
    CommandPayload,
    TargetConfig,
    TargetPayload,
    WorkspacePayload,
)
from shipyard.core.result import Err, Ok
from shipyard.output.console import MockConsole
from shipyard.targets import ChecksumsTarget, CommandTarget, WorkspaceTarget, build_target
from shipyard.targets.base import TargetContext


def context(tmp_path: Path) -> TargetContext:
    return TargetContext(console=MockConsole(), workdir=tmp_path)


@pytest.mark.parametrize(
    ("config", "expected"),
    [
        (TargetConfig(name="command", payload=CommandPayload(command=("echo",))), CommandTarget),
        (
            TargetConfig(name="workspace", payload=WorkspacePayload(command=("echo",), packages=())),
            WorkspaceTarget,
        ),
        (TargetConfig(name="checksums", payload=ChecksumsPayload(output="SUMS")), ChecksumsTarget),
    ],
)
def test_builds_matching_target(tmp_path: Path, config: TargetConfig, expected: type) -> None:
    provider = NoneArtifactProvider(console=MockConsole())
    result = build_target(config, provider, context(tmp_path))
    assert isinstance(result, Ok)
    assert isinstance(result.value, expected)
    assert result.value.provider is provider


def test_bad_pattern_is_configuration_error(tmp_path: Path) -> None:
    payload: TargetPayload = CommandPayload(command=("echo",))
    config = TargetConfig(name="command", payload=payload, id="x", include="/[unclosed/")

    result = build_target(config, NoneArtifactProvider(console=MockConsole()), context(tmp_path))

    assert isinstance(result, Err)
    assert result.error.kind == "configuration"
    assert result.error.target_id == "command[x]"
