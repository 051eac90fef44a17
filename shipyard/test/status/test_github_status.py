"""Tests for shipyard.status.github module."""

from __future__ import annotations

import pytest

from shipyard.core.config import GitHubConfig
from shipyard.core.filters import compile_pattern
from shipyard.core.result import Err, Ok
from shipyard.net.github import GitHubApi
from shipyard.net.http import HttpError, MockHttpClient
from shipyard.output.console import MockConsole
from shipyard.status.base import RevisionStatus
from shipyard.status.github import GitHubStatusProvider, combine_statuses

P = RevisionStatus.PENDING
S = RevisionStatus.SUCCESS
F = RevisionStatus.FAILURE
N = RevisionStatus.NOT_FOUND

BASE = "repos/acme/widget"
STATUS_URL = f"{BASE}/commits/abc/status"
CHECKS_URL = f"{BASE}/commits/abc/check-runs?per_page=100&page=1"


class TestCombineStatuses:
    def test_nothing_reported_is_not_found(self) -> None:
        assert combine_statuses([], []) is N

    def test_any_failure_fails(self) -> None:
        assert combine_statuses([("a", S), ("b", F), ("c", P)], []) is F

    def test_pending_beats_success(self) -> None:
        assert combine_statuses([("a", S), ("b", P)], []) is P

    def test_all_success(self) -> None:
        assert combine_statuses([("a", S), ("b", S)], []) is S

    def test_contexts_ignore_unrelated_failures(self) -> None:
        contexts = [compile_pattern("ci/*")]
        assert combine_statuses([("ci/build", S), ("lint", F)], contexts) is S

    def test_missing_context_is_pending(self) -> None:
        contexts = [compile_pattern("ci/build"), compile_pattern("ci/test")]
        assert combine_statuses([("ci/build", S)], contexts) is P

    def test_only_unrelated_results_is_pending(self) -> None:
        contexts = [compile_pattern("ci/build")]
        assert combine_statuses([("lint", S)], contexts) is P


def make_provider(http: MockHttpClient, contexts: tuple[str, ...] = ()) -> GitHubStatusProvider:
    return GitHubStatusProvider(
        api=GitHubApi(http, GitHubConfig(owner="acme", repo="widget")),
        console=MockConsole(),
        contexts=contexts,
    )


class TestGetRevisionStatus:
    @pytest.mark.asyncio
    async def test_combines_statuses_and_check_runs(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", STATUS_URL, {"statuses": [{"context": "ci/legacy", "state": "success"}]})
        http.set_json(
            "GET",
            CHECKS_URL,
            {
                "check_runs": [
                    {"name": "build", "status": "completed", "conclusion": "success"},
                    {"name": "docs", "status": "completed", "conclusion": "skipped"},
                ]
            },
        )

        assert await make_provider(http).get_revision_status("abc") == Ok(S)

    @pytest.mark.asyncio
    async def test_running_check_is_pending(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", STATUS_URL, {"statuses": []})
        http.set_json("GET", CHECKS_URL, {"check_runs": [{"name": "build", "status": "in_progress"}]})

        assert await make_provider(http).get_revision_status("abc") == Ok(P)

    @pytest.mark.asyncio
    async def test_failed_commit_status(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", STATUS_URL, {"statuses": [{"context": "ci", "state": "error"}]})
        http.set_json("GET", CHECKS_URL, {"check_runs": []})

        assert await make_provider(http).get_revision_status("abc") == Ok(F)

    @pytest.mark.asyncio
    async def test_no_reports_is_not_found(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", STATUS_URL, {"statuses": []})
        http.set_json("GET", CHECKS_URL, {"check_runs": []})

        assert await make_provider(http).get_revision_status("abc") == Ok(N)

    @pytest.mark.asyncio
    async def test_unknown_ref_404_is_not_found(self) -> None:
        assert await make_provider(MockHttpClient()).get_revision_status("abc") == Ok(N)

    @pytest.mark.asyncio
    async def test_unknown_sha_422_is_not_found(self) -> None:
        http = MockHttpClient()
        http.set_json(
            "GET",
            STATUS_URL,
            HttpError(url=STATUS_URL, status=422, message="No commit found for SHA: abc"),
        )

        assert await make_provider(http).get_revision_status("abc") == Ok(N)

    @pytest.mark.asyncio
    async def test_server_error_is_backend_error(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", STATUS_URL, HttpError(url=STATUS_URL, status=502, message="Bad Gateway"))

        result = await make_provider(http).get_revision_status("abc")

        assert isinstance(result, Err)
        assert result.error.kind == "backend"

    @pytest.mark.asyncio
    async def test_contexts_narrow_results(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", STATUS_URL, {"statuses": [{"context": "flaky", "state": "failure"}]})
        http.set_json(
            "GET",
            CHECKS_URL,
            {"check_runs": [{"name": "build", "status": "completed", "conclusion": "success"}]},
        )

        assert await make_provider(http, ("build",)).get_revision_status("abc") == Ok(S)

    @pytest.mark.asyncio
    async def test_check_runs_are_paged(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", STATUS_URL, {"statuses": []})
        passing = [
            {"name": f"shard-{i}", "status": "completed", "conclusion": "success"}
            for i in range(100)
        ]
        http.set_json("GET", CHECKS_URL, {"check_runs": passing})
        http.set_json(
            "GET",
            f"{BASE}/commits/abc/check-runs?per_page=100&page=2",
            {"check_runs": [{"name": "e2e", "status": "completed", "conclusion": "failure"}]},
        )

        assert await make_provider(http).get_revision_status("abc") == Ok(F)

    @pytest.mark.asyncio
    async def test_context_on_later_page_counts(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", STATUS_URL, {"statuses": []})
        others = [
            {"name": f"lint-{i}", "status": "completed", "conclusion": "success"}
            for i in range(100)
        ]
        http.set_json("GET", CHECKS_URL, {"check_runs": others})
        http.set_json(
            "GET",
            f"{BASE}/commits/abc/check-runs?per_page=100&page=2",
            {"check_runs": [{"name": "build", "status": "completed", "conclusion": "success"}]},
        )

        assert await make_provider(http, ("build",)).get_revision_status("abc") == Ok(S)


class TestRepositoryInfo:
    @pytest.mark.asyncio
    async def test_reads_repository(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", BASE, {"full_name": "acme/widget", "default_branch": "main"})

        result = await make_provider(http).get_repository_info()

        assert isinstance(result, Ok)
        assert result.value.full_name == "acme/widget"
        assert result.value.default_branch == "main"

    @pytest.mark.asyncio
    async def test_unknown_repository(self) -> None:
        result = await make_provider(MockHttpClient()).get_repository_info()

        assert isinstance(result, Err)
        assert result.error.kind == "not_found"
