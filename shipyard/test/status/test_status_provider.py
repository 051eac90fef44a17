"""Tests for the shared polling loops in shipyard.status.base."""

from __future__ import annotations

import pytest

from shipyard.core.errors import PublishError
from shipyard.core.result import Err, Ok, Result
from shipyard.output.console import MockConsole, Style
from shipyard.status.base import RepositoryInfo, RevisionStatus, StatusProvider
from shipyard.status.none import NoneStatusProvider

P = RevisionStatus.PENDING
S = RevisionStatus.SUCCESS
F = RevisionStatus.FAILURE
N = RevisionStatus.NOT_FOUND


class FakeTime:
    """Clock and sleep pair: sleeping advances the clock."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def clock(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class ScriptedStatusProvider(StatusProvider):
    """Answers the scripted statuses in order, then repeats the last one."""

    name = "scripted"

    def __init__(
        self,
        script: list[RevisionStatus | PublishError],
        fake_time: FakeTime,
        *,
        build_timeout: float = 120.0,
        lookup_timeout: float = 60.0,
    ) -> None:
        self.mock_console = MockConsole()
        super().__init__(
            console=self.mock_console,
            poll_interval=30.0,
            build_timeout=build_timeout,
            lookup_timeout=lookup_timeout,
            clock=fake_time.clock,
            sleep=fake_time.sleep,
        )
        self.script = script
        self.polls = 0

    async def get_revision_status(self, revision: str) -> Result[RevisionStatus, PublishError]:
        item = self.script[min(self.polls, len(self.script) - 1)]
        self.polls += 1
        if isinstance(item, PublishError):
            return Err(item)
        return Ok(item)

    async def get_repository_info(self) -> Result[RepositoryInfo, PublishError]:
        return Ok(RepositoryInfo(full_name="acme/widget"))


class TestWaitForBuild:
    @pytest.mark.asyncio
    async def test_success_after_pending(self) -> None:
        t = FakeTime()
        provider = ScriptedStatusProvider([P, P, S], t)

        result = await provider.wait_for_build_to_succeed("abc")

        assert result == Ok(None)
        assert provider.polls == 3
        assert t.sleeps == [30.0, 30.0]
        assert provider.mock_console.find("built successfully")

    @pytest.mark.asyncio
    async def test_failure_is_build_failed(self) -> None:
        provider = ScriptedStatusProvider([P, F], FakeTime())

        result = await provider.wait_for_build_to_succeed("abc")

        assert isinstance(result, Err)
        assert result.error.kind == "build_failed"
        assert result.error.revision == "abc"
        assert result.error.reportable

    @pytest.mark.asyncio
    async def test_times_out_when_budget_exhausted(self) -> None:
        t = FakeTime()
        provider = ScriptedStatusProvider([P], t, build_timeout=120.0)

        result = await provider.wait_for_build_to_succeed("abc")

        assert isinstance(result, Err)
        assert result.error.kind == "timeout"
        # polls at 0, 30, 60, 90 wait; the poll at 120 times out
        assert provider.polls == 5
        assert t.now == 120.0

    @pytest.mark.asyncio
    async def test_flapping_status_does_not_reset_budget(self) -> None:
        t = FakeTime()
        provider = ScriptedStatusProvider([N, P, N, P, N, P, N, P], t, build_timeout=120.0)

        result = await provider.wait_for_build_to_succeed("abc")

        assert isinstance(result, Err)
        assert result.error.kind == "timeout"
        assert provider.polls == 5

    @pytest.mark.asyncio
    async def test_settled_status_wins_after_budget(self) -> None:
        provider = ScriptedStatusProvider([P, P, P, P, S], FakeTime(), build_timeout=120.0)

        result = await provider.wait_for_build_to_succeed("abc")

        assert result == Ok(None)

    @pytest.mark.asyncio
    async def test_backend_error_stops_polling(self) -> None:
        boom = PublishError(kind="backend", message="500")
        provider = ScriptedStatusProvider([P, boom, S], FakeTime())

        result = await provider.wait_for_build_to_succeed("abc")

        assert result == Err(boom)
        assert provider.polls == 2

    @pytest.mark.asyncio
    async def test_waiting_message_printed_on_change_only(self) -> None:
        provider = ScriptedStatusProvider([N, P, P, P, S], FakeTime(), build_timeout=600.0)

        await provider.wait_for_build_to_succeed("abc")

        dim = [o.message for o in provider.mock_console.outputs if o.style == Style.DIM]
        assert len(dim) == 2
        assert "not found yet" in dim[0]
        assert "still in progress" in dim[1]


class TestPollRevisionStatus:
    @pytest.mark.asyncio
    async def test_returns_first_known_status(self) -> None:
        provider = ScriptedStatusProvider([N, N, P], FakeTime())

        result = await provider.poll_revision_status("abc")

        assert result == Ok(P)
        assert provider.polls == 3

    @pytest.mark.asyncio
    async def test_uses_lookup_budget(self) -> None:
        t = FakeTime()
        provider = ScriptedStatusProvider([N], t, lookup_timeout=60.0)

        result = await provider.poll_revision_status("abc")

        assert isinstance(result, Err)
        assert result.error.kind == "timeout"
        assert t.now == 60.0


class TestNoneStatusProvider:
    @pytest.mark.asyncio
    async def test_everything_is_built(self) -> None:
        provider = NoneStatusProvider(console=MockConsole())

        assert await provider.get_revision_status("anything") == Ok(S)
        assert await provider.wait_for_build_to_succeed("anything") == Ok(None)
        info = await provider.get_repository_info()
        assert isinstance(info, Ok)
        assert info.value.full_name == "(none)"
