"""Tests for shipyard.core.errors module."""

from __future__ import annotations

from shipyard.core.errors import ErrorCode, PublishError, report
from shipyard.core.result import Err, Ok
from shipyard.output.console import MockConsole


class TestErrorCode:
    def test_values(self) -> None:
        assert int(ErrorCode.OK) == 0
        assert int(ErrorCode.FAILURE) == 1

    def test_is_success(self) -> None:
        assert ErrorCode.OK.is_success
        assert not ErrorCode.FAILURE.is_success

    def test_str(self) -> None:
        assert str(ErrorCode.FAILURE) == "failure"


class TestPublishError:
    def test_reportable_kinds(self) -> None:
        assert PublishError(kind="build_failed", message="x").reportable
        assert PublishError(kind="target_failed", message="x").reportable
        assert not PublishError(kind="timeout", message="x").reportable
        assert not PublishError(kind="configuration", message="x").reportable

    def test_pretty_with_hint(self) -> None:
        error = PublishError(kind="not_found", message="no branch", hint="pass --rev")
        assert error.pretty() == "no branch (hint: pass --rev)"

    def test_pretty_without_hint(self) -> None:
        assert PublishError(kind="io", message="disk full").pretty() == "disk full"


class TestReport:
    def test_dry_run_downgrades_to_warning(self) -> None:
        console = MockConsole()
        error = PublishError(kind="build_failed", message="CI is red")

        result = report(error, dry_run=True, console=console)

        assert isinstance(result, Ok)
        assert console.has_warning()
        assert console.find("[dry-run] CI is red")

    def test_normal_mode_returns_error(self) -> None:
        console = MockConsole()
        error = PublishError(kind="target_failed", message="upload failed")

        result = report(error, dry_run=False, console=console)

        assert result == Err(error)
        assert console.outputs == []
