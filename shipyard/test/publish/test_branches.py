"""Tests for shipyard.publish.branches module."""

from __future__ import annotations

import pytest

from shipyard.core.config import GitHubConfig
from shipyard.core.result import Err, Ok
from shipyard.net.github import GitHubApi
from shipyard.net.http import HttpError, MockHttpClient
from shipyard.output.console import MockConsole
from shipyard.publish.branches import GitHubSourceControl

BASE = "repos/acme/widget"


def make_scm(http: MockHttpClient, *, dry_run: bool = False) -> tuple[GitHubSourceControl, MockConsole]:
    console = MockConsole()
    api = GitHubApi(http, GitHubConfig(owner="acme", repo="widget"))
    return GitHubSourceControl(api, console, dry_run=dry_run), console


def repo_http() -> MockHttpClient:
    http = MockHttpClient()
    http.set_json("GET", BASE, {"full_name": "acme/widget", "default_branch": "main"})
    return http


class TestResolveBranchHead:
    @pytest.mark.asyncio
    async def test_returns_head_sha(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", f"{BASE}/branches/release/1.0", {"commit": {"sha": "deadbeef"}})
        scm, _ = make_scm(http)

        assert await scm.resolve_branch_head("release/1.0") == Ok("deadbeef")

    @pytest.mark.asyncio
    async def test_missing_branch(self) -> None:
        scm, _ = make_scm(MockHttpClient())

        result = await scm.resolve_branch_head("release/1.0")

        assert isinstance(result, Err)
        assert result.error.kind == "not_found"
        assert result.error.hint == "prepare the release first or pass --rev"

    @pytest.mark.asyncio
    async def test_server_error(self) -> None:
        http = MockHttpClient()
        url = f"{BASE}/branches/release/1.0"
        http.set_json("GET", url, HttpError(url=url, status=500, message="Server Error"))
        scm, _ = make_scm(http)

        result = await scm.resolve_branch_head("release/1.0")

        assert isinstance(result, Err)
        assert result.error.kind == "backend"


class TestMergeBranch:
    @pytest.mark.asyncio
    async def test_merges_into_default_branch(self) -> None:
        http = repo_http()
        http.set_json("POST", f"{BASE}/merges", {"sha": "cafe"})
        scm, console = make_scm(http)

        assert await scm.merge_branch("release/1.0") == Ok(None)

        index = http.calls.index(("POST", f"{BASE}/merges"))
        body = http.bodies[index]
        assert body is not None
        assert body["base"] == "main"
        assert body["head"] == "release/1.0"
        assert console.find("merged release/1.0 into main")

    @pytest.mark.asyncio
    async def test_already_merged(self) -> None:
        http = repo_http()
        http.set_json("POST", f"{BASE}/merges", None)
        scm, console = make_scm(http)

        assert await scm.merge_branch("release/1.0") == Ok(None)
        assert console.find("already merged")

    @pytest.mark.asyncio
    async def test_conflict(self) -> None:
        http = repo_http()
        url = f"{BASE}/merges"
        http.set_json("POST", url, HttpError(url=url, status=409, message="Merge Conflict"))
        scm, _ = make_scm(http)

        result = await scm.merge_branch("release/1.0")

        assert isinstance(result, Err)
        assert "merge conflict" in result.error.message

    @pytest.mark.asyncio
    async def test_dry_run_does_not_post(self) -> None:
        http = repo_http()
        scm, console = make_scm(http, dry_run=True)

        assert await scm.merge_branch("release/1.0") == Ok(None)
        assert all(method != "POST" for method, _ in http.calls)
        assert console.find("[dry-run] would merge release/1.0 into main")

    @pytest.mark.asyncio
    async def test_default_branch_is_cached(self) -> None:
        http = repo_http()
        http.set_json("POST", f"{BASE}/merges", {"sha": "cafe"})
        scm, _ = make_scm(http)

        await scm.merge_branch("release/1.0")
        await scm.merge_branch("release/1.1")

        assert http.calls.count(("GET", BASE)) == 1


class TestDeleteBranch:
    @pytest.mark.asyncio
    async def test_deletes_ref(self) -> None:
        http = MockHttpClient()
        http.set_json("DELETE", f"{BASE}/git/refs/heads/release/1.0", None)
        scm, _ = make_scm(http)

        assert await scm.delete_branch("release/1.0") == Ok(None)
        assert ("DELETE", f"{BASE}/git/refs/heads/release/1.0") in http.calls

    @pytest.mark.asyncio
    async def test_dry_run(self) -> None:
        http = MockHttpClient()
        scm, console = make_scm(http, dry_run=True)

        assert await scm.delete_branch("release/1.0") == Ok(None)
        assert http.calls == []
        assert console.find("[dry-run] would delete branch release/1.0")
