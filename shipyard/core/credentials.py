"""Credential resolution.

Credentials are read from the process environment exactly once, by the CLI
context, and handed to the components that need them. Nothing below the CLI
reads ``os.environ`` for secrets.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

__all__ = ["Credentials", "resolve_credentials", "TOKEN_ENV_VARS"]

TOKEN_ENV_VARS: tuple[str, ...] = ("GITHUB_TOKEN", "GH_TOKEN")


@dataclass(frozen=True, slots=True)
class Credentials:
    github_token: str | None = None

    def __repr__(self) -> str:
        token = "***" if self.github_token else None
        return f"Credentials(github_token={token!r})"

    def child_env(self) -> dict[str, str]:
        """Variables exported to target subprocesses."""
        if self.github_token:
            return {"GITHUB_TOKEN": self.github_token}
        return {}


def resolve_credentials(environ: Mapping[str, str]) -> Credentials:
    for name in TOKEN_ENV_VARS:
        value = environ.get(name, "").strip()
        if value:
            return Credentials(github_token=value)
    return Credentials()
