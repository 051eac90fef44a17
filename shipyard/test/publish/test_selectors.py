from __future__ import annotations

import pytest

from shipyard.core.config import CommandPayload, TargetConfig
from shipyard.core.result import Err, Ok
from shipyard.publish.selectors import Selection, resolve_targets

PAYLOAD = CommandPayload(command=("echo",))
NPM_CORE = TargetConfig(name="command", payload=PAYLOAD, id="core")
NPM_CLI = TargetConfig(name="command", payload=PAYLOAD, id="cli")
SUMS = TargetConfig(name="checksums", payload=PAYLOAD)
CONFIGURED = (NPM_CORE, SUMS, NPM_CLI)


def selected(result: object) -> Selection:
    assert isinstance(result, Ok)
    return result.value


class TestResolveTargets:
    @pytest.mark.parametrize("selectors", [[], ["all"], [" all "], [""]])
    def test_all(self, selectors: list[str]) -> None:
        selection = selected(resolve_targets(selectors, CONFIGURED))
        assert selection.mode == "all"
        assert selection.targets == CONFIGURED
        assert not selection.is_explicit

    def test_none(self) -> None:
        selection = selected(resolve_targets(["none"], CONFIGURED))
        assert selection.mode == "none"
        assert selection.targets == ()

    @pytest.mark.parametrize("selectors", [["all", "checksums"], ["none", "command[cli]"], ["all", "none"]])
    def test_special_selectors_do_not_combine(self, selectors: list[str]) -> None:
        result = resolve_targets(selectors, CONFIGURED)
        assert isinstance(result, Err)
        assert result.error.kind == "configuration"

    def test_explicit_ids_keep_configured_order(self) -> None:
        selection = selected(resolve_targets(["command[cli]", "checksums"], CONFIGURED))
        assert selection.is_explicit
        assert selection.targets == (SUMS, NPM_CLI)

    def test_name_selects_every_target_of_that_kind(self) -> None:
        selection = selected(resolve_targets(["command"], CONFIGURED))
        assert selection.targets == (NPM_CORE, NPM_CLI)

    def test_unknown_target(self) -> None:
        result = resolve_targets(["pypi"], CONFIGURED)
        assert isinstance(result, Err)
        assert result.error.message == "unknown target: pypi"
        assert result.error.hint == "configured targets: command[core], checksums, command[cli]"
