from __future__ import annotations

from shipyard.core.errors import PublishError
from shipyard.core.result import Ok, Result

from .base import RepositoryInfo, RevisionStatus, StatusProvider


class NoneStatusProvider(StatusProvider):
    """Provider for projects without CI: every revision counts as built."""

    name = "none"

    async def get_revision_status(self, revision: str) -> Result[RevisionStatus, PublishError]:
        return Ok(RevisionStatus.SUCCESS)

    async def get_repository_info(self) -> Result[RepositoryInfo, PublishError]:
        return Ok(RepositoryInfo(full_name="(none)"))
