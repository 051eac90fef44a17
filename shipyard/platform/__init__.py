"""Platform abstraction layer: subprocesses and filesystem."""

from .files import atomic_write_text, make_download_dir, remove_tree
from .process import ProcessError, run

__all__ = [
    # files
    "atomic_write_text",
    "make_download_dir",
    "remove_tree",
    # process
    "ProcessError",
    "run",
]
