"""Build status providers.

A ``StatusProvider`` answers one question, "what is the CI status of this
revision right now?", through ``get_revision_status``. The polling loops on
top of it are shared: ``poll_revision_status`` waits until the backend knows
the revision, ``wait_for_build_to_succeed`` waits until the build settles.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

from shipyard.core.config import (
    DEFAULT_BUILD_TIMEOUT,
    DEFAULT_LOOKUP_TIMEOUT,
    DEFAULT_POLL_INTERVAL,
)
from shipyard.core.errors import PublishError
from shipyard.core.result import Err, Ok, Result
from shipyard.output.console import ConsoleProtocol, Style

from .polling import PollDecision, PollPolicy, decide

__all__ = [
    "RepositoryInfo",
    "RevisionStatus",
    "StatusProvider",
]


class RevisionStatus(Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"
    NOT_FOUND = "not_found"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class RepositoryInfo:
    full_name: str
    default_branch: str | None = None


def _is_known(status: RevisionStatus) -> bool:
    return status is not RevisionStatus.NOT_FOUND


def _is_settled(status: RevisionStatus) -> bool:
    return status in (RevisionStatus.SUCCESS, RevisionStatus.FAILURE)


class StatusProvider(ABC):
    """Base class for status providers.

    Subclasses must implement:
    - get_revision_status(): one query; backend "not found" answers map to
      Ok(RevisionStatus.NOT_FOUND), other failures are returned as Err
    - get_repository_info(): credentials / permissions pre-flight
    """

    name: str = "base"

    def __init__(
        self,
        *,
        console: ConsoleProtocol,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        build_timeout: float = DEFAULT_BUILD_TIMEOUT,
        lookup_timeout: float = DEFAULT_LOOKUP_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.console = console
        self.build_policy = PollPolicy(interval=poll_interval, max_wait=build_timeout)
        self.lookup_policy = PollPolicy(interval=poll_interval, max_wait=lookup_timeout)
        self._clock = clock
        self._sleep = sleep

    @abstractmethod
    async def get_revision_status(self, revision: str) -> Result[RevisionStatus, PublishError]: ...

    @abstractmethod
    async def get_repository_info(self) -> Result[RepositoryInfo, PublishError]: ...

    async def _poll(
        self,
        revision: str,
        policy: PollPolicy,
        settled: Callable[[RevisionStatus], bool],
        waiting: Callable[[RevisionStatus], str],
    ) -> Result[RevisionStatus, PublishError]:
        started = self._clock()
        last: RevisionStatus | None = None
        while True:
            result = await self.get_revision_status(revision)
            if isinstance(result, Err):
                return result
            status = result.value

            match decide(status, self._clock() - started, policy, settled):
                case PollDecision.STOP:
                    return Ok(status)
                case PollDecision.TIMEOUT:
                    return Err(
                        PublishError(
                            kind="timeout",
                            message=(
                                f"waited more than {policy.max_wait:.0f}s for revision "
                                f"{revision} (last status: {status})"
                            ),
                            revision=revision,
                        )
                    )
                case PollDecision.WAIT:
                    if status is not last:
                        self.console.print(waiting(status), Style.DIM)
                        last = status
                    await self._sleep(policy.interval)

    async def poll_revision_status(self, revision: str) -> Result[RevisionStatus, PublishError]:
        """Poll until the backend knows ``revision``; return its first known status."""

        def waiting(_status: RevisionStatus) -> str:
            return (
                f"revision {revision} not found yet, "
                f"retrying every {self.lookup_policy.interval:.0f}s"
            )

        return await self._poll(revision, self.lookup_policy, _is_known, waiting)

    async def wait_for_build_to_succeed(self, revision: str) -> Result[None, PublishError]:
        """Block until the revision's build succeeds.

        Returns Err(kind="build_failed") when CI reports a failure and
        Err(kind="timeout") when the build budget is exhausted. The budget is
        measured from the first poll, whatever the intermediate statuses.
        """
        self.console.info(f"waiting for CI of {revision}")

        def waiting(status: RevisionStatus) -> str:
            if status is RevisionStatus.NOT_FOUND:
                return f"revision {revision} not found yet, waiting"
            return (
                f"CI builds are still in progress, "
                f"sleeping for {self.build_policy.interval:.0f}s"
            )

        result = await self._poll(revision, self.build_policy, _is_settled, waiting)
        if isinstance(result, Err):
            return result

        if result.value is RevisionStatus.FAILURE:
            return Err(
                PublishError(
                    kind="build_failed",
                    message=f"build(s) for revision {revision} have failed",
                    hint="check the revision's status in CI",
                    revision=revision,
                )
            )
        self.console.success(f"revision {revision} has been built successfully")
        return Ok(None)
