"""Async HTTP client abstraction.

This module provides:
- HttpClient: Protocol for HTTP operations (injectable for tests)
- HttpxClient: Real implementation using httpx.AsyncClient
- MockHttpClient: Mock implementation for testing
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import Protocol, runtime_checkable

import httpx

from shipyard.core.result import Err, Ok, Result
from shipyard.core.structured import as_str_dict, get_str

__all__ = [
    "HttpClient",
    "HttpxClient",
    "MockHttpClient",
    "HttpError",
]

DEFAULT_TIMEOUT_SECONDS = 30.0
DOWNLOAD_TIMEOUT_SECONDS = 10 * 60.0


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for the HTTP operations providers need."""

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        body: Mapping[str, object] | None = None,
    ) -> Result[object, HttpError]:
        """Send a request and decode the JSON response.

        Returns Ok(None) for empty responses (204 No Content).
        """
        ...

    async def download(self, url: str, dest: Path) -> Result[Path, HttpError]:
        """Stream the response body of ``url`` into ``dest``."""
        ...


def _error_message(response: httpx.Response) -> str:
    try:
        payload: object = response.json()
    except ValueError:
        return response.reason_phrase or "request failed"
    data = as_str_dict(payload)
    if data is not None:
        message = get_str(data, "message")
        if message:
            return message
    return response.reason_phrase or "request failed"


class HttpxClient:
    """Real HTTP client backed by ``httpx.AsyncClient``.

    Handles:
    - base URL and default headers (auth, API version)
    - JSON decoding and error payload extraction
    - redirects (artifact archives redirect to blob storage)
    - streaming downloads
    """

    def __init__(
        self,
        *,
        base_url: str = "",
        headers: Mapping[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            headers=dict(headers or {}),
            timeout=httpx.Timeout(timeout, connect=10.0),
            follow_redirects=True,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpxClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        body: Mapping[str, object] | None = None,
    ) -> Result[object, HttpError]:
        try:
            response = await self._client.request(
                method, url, json=dict(body) if body is not None else None
            )
        except httpx.TimeoutException:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except httpx.HTTPError as e:
            return Err(HttpError(url=url, status=0, message=str(e) or type(e).__name__))

        if response.status_code >= 400:
            return Err(
                HttpError(url=url, status=response.status_code, message=_error_message(response))
            )

        if response.status_code == 204 or not response.content:
            return Ok(None)

        try:
            return Ok(json.loads(response.content.decode("utf-8")))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))

    async def download(self, url: str, dest: Path) -> Result[Path, HttpError]:
        dest.parent.mkdir(parents=True, exist_ok=True)
        try:
            async with self._client.stream(
                "GET", url, timeout=DOWNLOAD_TIMEOUT_SECONDS
            ) as response:
                if response.status_code >= 400:
                    await response.aread()
                    return Err(
                        HttpError(
                            url=url,
                            status=response.status_code,
                            message=_error_message(response),
                        )
                    )
                with dest.open("wb") as f:
                    async for chunk in response.aiter_bytes():
                        f.write(chunk)
        except httpx.TimeoutException:
            dest.unlink(missing_ok=True)
            return Err(HttpError(url=url, status=0, message="Download timed out"))
        except httpx.HTTPError as e:
            dest.unlink(missing_ok=True)
            return Err(HttpError(url=url, status=0, message=str(e) or type(e).__name__))
        except OSError as e:
            dest.unlink(missing_ok=True)
            return Err(HttpError(url=url, status=0, message=str(e)))

        return Ok(dest)


class MockHttpClient:
    """Mock HTTP client for testing.

    Responses are keyed by (method, url). Unknown keys answer 404, which is
    exactly what GitHub does for unknown refs.

    Usage:
        client = MockHttpClient()
        client.set_json("GET", "repos/acme/widget", {"default_branch": "main"})
        result = await client.request_json("GET", "repos/acme/widget")
    """

    def __init__(self) -> None:
        self._json_responses: dict[tuple[str, str], object | HttpError] = {}
        self._download_responses: dict[str, bytes | HttpError] = {}
        self.calls: list[tuple[str, str]] = []
        self.bodies: list[Mapping[str, object] | None] = []

    def set_json(self, method: str, url: str, response: object | HttpError) -> None:
        self._json_responses[(method.upper(), url)] = response

    def set_download(self, url: str, response: bytes | HttpError) -> None:
        self._download_responses[url] = response

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        body: Mapping[str, object] | None = None,
    ) -> Result[object, HttpError]:
        key = (method.upper(), url)
        self.calls.append(key)
        self.bodies.append(body)

        if key not in self._json_responses:
            return Err(HttpError(url=url, status=404, message="Not Found"))

        response = self._json_responses[key]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    async def download(self, url: str, dest: Path) -> Result[Path, HttpError]:
        self.calls.append(("DOWNLOAD", url))

        if url not in self._download_responses:
            return Err(HttpError(url=url, status=404, message="Not Found"))

        response = self._download_responses[url]
        if isinstance(response, HttpError):
            return Err(response)

        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(response)
        return Ok(dest)
