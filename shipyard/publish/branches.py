"""Release branch lifecycle on the source-control host."""

from __future__ import annotations

from typing import Protocol

from shipyard.core.errors import PublishError
from shipyard.core.result import Err, Ok, Result
from shipyard.core.structured import as_str_dict, get_str, get_table
from shipyard.net.github import GitHubApi, to_publish_error
from shipyard.output.console import ConsoleProtocol, Style

__all__ = ["GitHubSourceControl", "SourceControl"]


class SourceControl(Protocol):
    async def resolve_branch_head(self, branch: str) -> Result[str, PublishError]:
        """Return the commit SHA at the tip of ``branch``."""
        ...

    async def merge_branch(self, branch: str) -> Result[None, PublishError]:
        """Merge ``branch`` into the default branch."""
        ...

    async def delete_branch(self, branch: str) -> Result[None, PublishError]: ...


class GitHubSourceControl:
    """Branch operations through the GitHub REST API.

    Mutations (merge, delete) are printed instead of performed in dry-run
    mode; lookups always hit the API.
    """

    def __init__(self, api: GitHubApi, console: ConsoleProtocol, *, dry_run: bool = False) -> None:
        self._api = api
        self._console = console
        self._dry_run = dry_run
        self._default_branch: str | None = None

    async def default_branch(self) -> Result[str, PublishError]:
        if self._default_branch is not None:
            return Ok(self._default_branch)
        result = await self._api.get(self._api.repo_path(), what=f"repository {self._api.repo.slug}")
        if isinstance(result, Err):
            return result
        data = as_str_dict(result.value) or {}
        branch = get_str(data, "default_branch")
        if branch is None:
            return Err(
                PublishError(kind="backend", message=f"{self._api.repo.slug}: no default branch")
            )
        self._default_branch = branch
        return Ok(branch)

    async def resolve_branch_head(self, branch: str) -> Result[str, PublishError]:
        result = await self._api.request_raw("GET", self._api.repo_path(f"/branches/{branch}"))
        if isinstance(result, Err):
            error = to_publish_error(result.error, what=f"branch {branch}")
            if error.kind == "not_found":
                return Err(
                    PublishError(
                        kind="not_found",
                        message=f"release branch {branch} not found in {self._api.repo.slug}",
                        hint="prepare the release first or pass --rev",
                    )
                )
            return Err(error)

        data = as_str_dict(result.value) or {}
        commit = get_table(data, "commit")
        sha = get_str(commit, "sha") if commit is not None else None
        if sha is None:
            return Err(PublishError(kind="backend", message=f"branch {branch}: no head commit"))
        return Ok(sha)

    async def merge_branch(self, branch: str) -> Result[None, PublishError]:
        base = await self.default_branch()
        if isinstance(base, Err):
            return base

        if self._dry_run:
            self._console.print(f"[dry-run] would merge {branch} into {base.value}", Style.DIM)
            return Ok(None)

        body: dict[str, object] = {
            "base": base.value,
            "head": branch,
            "commit_message": f"Merge branch '{branch}'",
        }
        result = await self._api.request_raw("POST", self._api.repo_path("/merges"), body=body)
        if isinstance(result, Err):
            if result.error.status == 409:
                return Err(
                    PublishError(
                        kind="backend",
                        message=f"merge conflict between {branch} and {base.value}",
                        hint="merge the release branch manually",
                    )
                )
            return Err(to_publish_error(result.error, what=f"merge {branch}"))

        if result.value is None:
            self._console.info(f"{branch} is already merged into {base.value}")
        else:
            self._console.success(f"merged {branch} into {base.value}")
        return Ok(None)

    async def delete_branch(self, branch: str) -> Result[None, PublishError]:
        if self._dry_run:
            self._console.print(f"[dry-run] would delete branch {branch}", Style.DIM)
            return Ok(None)

        result = await self._api.request(
            "DELETE", self._api.repo_path(f"/git/refs/heads/{branch}"), what=f"delete {branch}"
        )
        if isinstance(result, Err):
            return result
        self._console.success(f"deleted branch {branch}")
        return Ok(None)
