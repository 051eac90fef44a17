"""Release sequencing: target selection, dependency ordering, branch handling.

The orchestrator itself lives in ``shipyard.publish.orchestrator``; it is not
re-exported here because targets import ``shipyard.publish.ordering``.
"""

from .branches import GitHubSourceControl, SourceControl
from .ordering import Package, dependency_order
from .selectors import Selection, resolve_targets

__all__ = [
    "GitHubSourceControl",
    "Package",
    "Selection",
    "SourceControl",
    "dependency_order",
    "resolve_targets",
]
