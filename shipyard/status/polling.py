"""Pure polling decisions.

``decide`` holds the whole wait policy so it can be tested without clocks or
sleeps. The provider loops in ``status.base`` feed it the latest status and
the time elapsed since the first poll.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .base import RevisionStatus

__all__ = ["PollDecision", "PollPolicy", "decide"]


class PollDecision(Enum):
    STOP = auto()
    WAIT = auto()
    TIMEOUT = auto()

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True, slots=True)
class PollPolicy:
    """How often to poll and for how long.

    Attributes:
        interval: Seconds between two polls.
        max_wait: Budget in seconds, measured from the first poll.
    """

    interval: float
    max_wait: float


def decide(
    status: RevisionStatus,
    elapsed: float,
    policy: PollPolicy,
    settled: Callable[[RevisionStatus], bool],
) -> PollDecision:
    """Return what the poll loop should do after observing ``status``.

    A settled status always stops the loop, even past the budget. Otherwise
    the loop times out once ``elapsed`` reaches ``max_wait``.
    """
    if settled(status):
        return PollDecision.STOP
    if elapsed >= policy.max_wait:
        return PollDecision.TIMEOUT
    return PollDecision.WAIT
