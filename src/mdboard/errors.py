"""Domain error raised by board operations."""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """What went wrong in a board operation."""

    NOT_INITIALISED = "not_initialised"
    TASK_NOT_FOUND = "task_not_found"
    COLUMN_NOT_FOUND = "column_not_found"
    TASK_ALREADY_INDEXED = "task_already_indexed"
    TASK_NOT_INDEXED = "task_not_indexed"
    DUPLICATE_TASK_ID = "duplicate_task_id"
    BLANK_NAME = "blank_name"
    SPRINT_NOT_FOUND = "sprint_not_found"
    ACCESS = "access"  # Document could not be read or written
    PARSE = "parse"  # Document could not be parsed
    INVALID_ARGUMENT = "invalid_argument"
    ARCHIVE = "archive"


class BoardError(Exception):
    """Raised when a board operation cannot be carried out.

    Board errors are never retried; callers report ``str(error)`` as is and
    can branch on ``kind``. Extra keyword arguments are kept in ``context``.
    """

    def __init__(self, message: str, kind: ErrorKind, **context: Any) -> None:
        super().__init__(message)
        self.kind = kind
        self.context = context

    def __repr__(self) -> str:
        return f"BoardError({str(self)!r}, kind={self.kind.value})"
