"""Repository layer for data access."""

from .filesystem import FilesystemStore
from .protocol import TaskStore

__all__ = [
    "FilesystemStore",
    "TaskStore",
]
