"""GitHub commit status provider.

GitHub reports CI results through two APIs: the legacy commit statuses
(``/commits/{ref}/status``) and the checks API (``/commits/{ref}/check-runs``).
Both are folded into one list of named results before deciding.
"""

from __future__ import annotations

import asyncio
import re
import time
from collections.abc import Awaitable, Callable

from shipyard.core.config import (
    DEFAULT_BUILD_TIMEOUT,
    DEFAULT_LOOKUP_TIMEOUT,
    DEFAULT_POLL_INTERVAL,
)
from shipyard.core.errors import PublishError
from shipyard.core.filters import any_match, compile_pattern
from shipyard.core.result import Err, Ok, Result
from shipyard.core.structured import StrDict, as_str_dict, get_list, get_str
from shipyard.net.github import GitHubApi, is_not_found, to_publish_error
from shipyard.output.console import ConsoleProtocol, Style

from .base import RepositoryInfo, RevisionStatus, StatusProvider

__all__ = ["GitHubStatusProvider", "combine_statuses"]

PER_PAGE = 100
_SUCCESSFUL_CONCLUSIONS = frozenset({"success", "neutral", "skipped"})

type NamedStatus = tuple[str, RevisionStatus]


def _commit_status(state: str | None) -> RevisionStatus:
    match state:
        case "success":
            return RevisionStatus.SUCCESS
        case "pending" | None:
            return RevisionStatus.PENDING
        case _:
            return RevisionStatus.FAILURE


def _check_run_status(run: StrDict) -> RevisionStatus:
    if get_str(run, "status") != "completed":
        return RevisionStatus.PENDING
    if get_str(run, "conclusion") in _SUCCESSFUL_CONCLUSIONS:
        return RevisionStatus.SUCCESS
    return RevisionStatus.FAILURE


def combine_statuses(
    results: list[NamedStatus],
    contexts: list[re.Pattern[str]],
) -> RevisionStatus:
    """Fold named CI results into one revision status.

    With ``contexts``, only matching results count and every context must have
    reported at least once.
    """
    if contexts:
        relevant = [(n, s) for n, s in results if any_match(contexts, n)]
        missing = [c for c in contexts if not any(c.search(n) for n, _ in relevant)]
    else:
        relevant = results
        missing = []

    if not results:
        return RevisionStatus.NOT_FOUND
    statuses = {s for _, s in relevant}
    if RevisionStatus.FAILURE in statuses:
        return RevisionStatus.FAILURE
    if missing or RevisionStatus.PENDING in statuses or not relevant:
        return RevisionStatus.PENDING
    return RevisionStatus.SUCCESS


class GitHubStatusProvider(StatusProvider):
    name = "github"

    def __init__(
        self,
        *,
        api: GitHubApi,
        console: ConsoleProtocol,
        contexts: tuple[str, ...] = (),
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        build_timeout: float = DEFAULT_BUILD_TIMEOUT,
        lookup_timeout: float = DEFAULT_LOOKUP_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        super().__init__(
            console=console,
            poll_interval=poll_interval,
            build_timeout=build_timeout,
            lookup_timeout=lookup_timeout,
            clock=clock,
            sleep=sleep,
        )
        self._api = api
        self._contexts = [compile_pattern(c) for c in contexts]

    async def _fetch(self, suffix: str) -> Result[StrDict | None, PublishError]:
        """GET a commit sub-resource; Ok(None) when GitHub does not know the ref."""
        result = await self._api.request_raw("GET", self._api.repo_path(suffix))
        if isinstance(result, Err):
            if is_not_found(result.error):
                return Ok(None)
            return Err(to_publish_error(result.error, what=f"status of {suffix}"))
        return Ok(as_str_dict(result.value) or {})

    async def _check_runs(self, revision: str) -> Result[list[StrDict] | None, PublishError]:
        """Every check run of the commit, page by page; Ok(None) for an unknown ref."""
        runs: list[StrDict] = []
        page = 1
        while True:
            data = await self._fetch(
                f"/commits/{revision}/check-runs?per_page={PER_PAGE}&page={page}"
            )
            if isinstance(data, Err):
                return data
            if data.value is None:
                return Ok(None)
            raw = get_list(data.value, "check_runs") or []
            runs.extend(d for d in (as_str_dict(item) for item in raw) if d is not None)
            if len(raw) < PER_PAGE:
                return Ok(runs)
            page += 1

    async def get_revision_status(self, revision: str) -> Result[RevisionStatus, PublishError]:
        combined = await self._fetch(f"/commits/{revision}/status")
        if isinstance(combined, Err):
            return combined
        if combined.value is None:
            return Ok(RevisionStatus.NOT_FOUND)

        checks = await self._check_runs(revision)
        if isinstance(checks, Err):
            return checks
        if checks.value is None:
            return Ok(RevisionStatus.NOT_FOUND)

        results: list[NamedStatus] = []
        for item in get_list(combined.value, "statuses") or []:
            entry = as_str_dict(item)
            if entry is not None:
                results.append(
                    (get_str(entry, "context") or "", _commit_status(get_str(entry, "state")))
                )
        for run in checks.value:
            results.append((get_str(run, "name") or "", _check_run_status(run)))

        status = combine_statuses(results, self._contexts)
        self.console.print(f"{revision}: {status} ({len(results)} reported)", Style.DIM)
        return Ok(status)

    async def get_repository_info(self) -> Result[RepositoryInfo, PublishError]:
        result = await self._api.get(self._api.repo_path(), what=f"repository {self._api.repo.slug}")
        if isinstance(result, Err):
            return result
        data = as_str_dict(result.value) or {}
        return Ok(
            RepositoryInfo(
                full_name=get_str(data, "full_name") or self._api.repo.slug,
                default_branch=get_str(data, "default_branch"),
            )
        )
