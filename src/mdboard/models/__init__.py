"""Data models."""

from .enums import DateResolution, FieldType, SortOrder, UpdateDatePolicy
from .index import (
    DEFAULT_TASK_WORKLOAD,
    DEFAULT_TASK_WORKLOAD_TAGS,
    BoardOptions,
    CustomField,
    Index,
    Sorter,
    Sprint,
)
from .task import (
    DATE_FIELDS,
    Comment,
    DueInfo,
    HydratedTask,
    Relation,
    SubTask,
    Task,
    TaskMap,
    TaskMetadata,
    as_task_map,
)

__all__ = [
    "DATE_FIELDS",
    "DEFAULT_TASK_WORKLOAD",
    "DEFAULT_TASK_WORKLOAD_TAGS",
    "BoardOptions",
    "Comment",
    "CustomField",
    "DateResolution",
    "DueInfo",
    "FieldType",
    "HydratedTask",
    "Index",
    "Relation",
    "SortOrder",
    "Sorter",
    "Sprint",
    "SubTask",
    "Task",
    "TaskMap",
    "TaskMetadata",
    "UpdateDatePolicy",
    "as_task_map",
]
