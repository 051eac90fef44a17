"""GitHub REST API access shared by providers and branch handling."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from shipyard import __version__
from shipyard.core.config import GitHubConfig
from shipyard.core.credentials import Credentials
from shipyard.core.errors import PublishError
from shipyard.core.result import Err, Ok, Result
from shipyard.net.http import HttpClient, HttpError, HttpxClient

__all__ = ["GITHUB_API_URL", "GitHubApi", "github_http_client", "is_not_found", "to_publish_error"]

GITHUB_API_URL = "https://api.github.com"


def github_http_client(credentials: Credentials) -> HttpxClient:
    """Build the real client with auth and API version headers.

    The caller owns the client and must ``aclose()`` it.
    """
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
        "User-Agent": f"shipyard/{__version__}",
    }
    if credentials.github_token:
        headers["Authorization"] = f"Bearer {credentials.github_token}"
    return HttpxClient(base_url=GITHUB_API_URL, headers=headers)


def is_not_found(error: HttpError) -> bool:
    """Recognize GitHub's "unknown ref" signatures.

    Unknown branches and repos answer 404; a well-formed but unknown commit
    SHA answers 422 "No commit found for SHA".
    """
    if error.status == 404:
        return True
    return error.status == 422 and "no commit found" in error.message.lower()


def to_publish_error(error: HttpError, *, what: str) -> PublishError:
    if is_not_found(error):
        return PublishError(kind="not_found", message=f"{what}: not found", hint=str(error))
    return PublishError(kind="backend", message=f"{what}: {error}")


class GitHubApi:
    """Thin repository-scoped wrapper over an HttpClient."""

    def __init__(self, http: HttpClient, repo: GitHubConfig) -> None:
        self._http = http
        self.repo = repo

    def repo_path(self, suffix: str = "") -> str:
        return f"repos/{self.repo.owner}/{self.repo.repo}{suffix}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        body: Mapping[str, object] | None = None,
        what: str | None = None,
    ) -> Result[object, PublishError]:
        result = await self._http.request_json(method, path, body=body)
        if isinstance(result, Err):
            return Err(to_publish_error(result.error, what=what or f"{method} {path}"))
        return Ok(result.value)

    async def get(self, path: str, *, what: str | None = None) -> Result[object, PublishError]:
        return await self.request("GET", path, what=what)

    async def request_raw(
        self,
        method: str,
        path: str,
        *,
        body: Mapping[str, object] | None = None,
    ) -> Result[object, HttpError]:
        """Like ``request`` but keeps the HttpError so callers can branch on status."""
        return await self._http.request_json(method, path, body=body)

    async def download(self, path: str, dest: Path) -> Result[Path, PublishError]:
        result = await self._http.download(path, dest)
        if isinstance(result, Err):
            return Err(to_publish_error(result.error, what=f"download {path}"))
        return Ok(result.value)
