"""Typed field accessors shared by filtering and sorting."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any

from ..models import FieldType, Index, Task
from .workload import metadata_date, task_progress, task_workload

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")

# Singular names used in filter expressions
ALIASES = {
    "sub_task": "sub_tasks",
    "tag": "tags",
    "relation": "relations",
    "comment": "comments",
}


def canonical_field_name(name: str) -> str:
    """Normalise a field name to snake_case.

    ``count-sub-tasks``, ``countSubTasks`` and ``count_sub_tasks`` all map to
    ``count_sub_tasks``; singular aliases map to the plural field.
    """
    snake = _CAMEL_BOUNDARY.sub(r"_\1", name.strip()).replace("-", "_").lower()
    return ALIASES.get(snake, snake)


@dataclass(frozen=True)
class FieldAccessor:
    """Reads one field's value from a task.

    ``get`` returns None when the task has no value for the field.
    """

    name: str
    kind: FieldType
    get: Callable[[Task, Index], Any]


def _joined(lines: Iterator[str]) -> str:
    return "\n".join(lines)


def _date_accessor(name: str) -> Callable[[Task, Index], Any]:
    return lambda task, index: metadata_date(task, name)


def _builtin_accessors() -> list[FieldAccessor]:
    accessors = [
        FieldAccessor("id", FieldType.STRING, lambda task, index: task.id),
        FieldAccessor("name", FieldType.STRING, lambda task, index: task.name),
        FieldAccessor("description", FieldType.STRING, lambda task, index: task.description),
        FieldAccessor(
            "column", FieldType.STRING, lambda task, index: index.find_task_column(task.id)
        ),
    ]
    accessors += [
        FieldAccessor(name, FieldType.DATE, _date_accessor(name))
        for name in ("created", "updated", "started", "completed", "due")
    ]
    accessors += [
        FieldAccessor("workload", FieldType.NUMBER, lambda task, index: task_workload(index, task)),
        FieldAccessor("progress", FieldType.NUMBER, lambda task, index: task_progress(index, task)),
        FieldAccessor(
            "assigned", FieldType.STRING, lambda task, index: task.metadata.assigned or ""
        ),
        FieldAccessor(
            "sub_tasks",
            FieldType.STRING,
            lambda task, index: _joined(s.as_line() for s in task.sub_tasks),
        ),
        FieldAccessor(
            "count_sub_tasks", FieldType.NUMBER, lambda task, index: len(task.sub_tasks)
        ),
        FieldAccessor("tags", FieldType.STRING, lambda task, index: _joined(iter(task.metadata.tags))),
        FieldAccessor("count_tags", FieldType.NUMBER, lambda task, index: len(task.metadata.tags)),
        FieldAccessor(
            "relations",
            FieldType.STRING,
            lambda task, index: _joined(r.as_line() for r in task.relations),
        ),
        FieldAccessor(
            "count_relations", FieldType.NUMBER, lambda task, index: len(task.relations)
        ),
        FieldAccessor(
            "comments",
            FieldType.STRING,
            lambda task, index: _joined(c.as_line() for c in task.comments),
        ),
        FieldAccessor(
            "count_comments", FieldType.NUMBER, lambda task, index: len(task.comments)
        ),
    ]
    return accessors


def _custom_accessor(name: str, kind: FieldType) -> FieldAccessor:
    if kind == FieldType.DATE:
        return FieldAccessor(name, kind, _date_accessor(name))
    return FieldAccessor(name, kind, lambda task, index: task.metadata.get(name))


class FieldRegistry:
    """Closed set of fields a board's tasks can be filtered and sorted by."""

    def __init__(self, accessors: list[FieldAccessor]) -> None:
        self._accessors = {accessor.name: accessor for accessor in accessors}

    @classmethod
    def for_index(cls, index: Index) -> FieldRegistry:
        """Build the registry from built-in fields plus the index's custom fields."""
        accessors = _builtin_accessors()
        builtin_names = {accessor.name for accessor in accessors}
        for custom_field in index.options.custom_fields:
            if custom_field.name in builtin_names:
                logger.warning(
                    "Custom field %r shadows a built-in field and is ignored", custom_field.name
                )
                continue
            accessors.append(_custom_accessor(custom_field.name, custom_field.type))
        return cls(accessors)

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def __iter__(self) -> Iterator[FieldAccessor]:
        return iter(self._accessors.values())

    def get(self, name: str) -> FieldAccessor | None:
        """Look up a field by its exact name, then by its canonical name."""
        accessor = self._accessors.get(name)
        if accessor is None:
            accessor = self._accessors.get(canonical_field_name(name))
        return accessor

    def value(self, name: str, task: Task, index: Index) -> Any:
        """Read a field from a task; unknown fields read as None."""
        accessor = self.get(name)
        if accessor is None:
            return None
        return accessor.get(task, index)
