"""Network access: the async HTTP client and the GitHub API wrapper."""

from .http import HttpClient, HttpError, HttpxClient, MockHttpClient

__all__ = [
    "HttpClient",
    "HttpError",
    "HttpxClient",
    "MockHttpClient",
]
