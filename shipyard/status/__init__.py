"""CI status providers and the polling policy they share."""

from .base import RepositoryInfo, RevisionStatus, StatusProvider
from .github import GitHubStatusProvider
from .none import NoneStatusProvider
from .polling import PollDecision, PollPolicy, decide

__all__ = [
    "GitHubStatusProvider",
    "NoneStatusProvider",
    "PollDecision",
    "PollPolicy",
    "RepositoryInfo",
    "RevisionStatus",
    "StatusProvider",
    "decide",
]
