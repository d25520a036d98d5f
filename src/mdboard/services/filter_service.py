"""Service for filtering tasks by field values."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import UTC
from typing import Any

from ..errors import BoardError, ErrorKind
from ..models import FieldType, Index, Task, TaskMap, as_task_map
from ..utils import coerce_datetime
from .fields import FieldAccessor, FieldRegistry

logger = logging.getLogger(__name__)


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def string_filter(filter_: str | list[str], value: str) -> bool:
    """Check if ``value`` contains the filter, or any of a list of filters."""
    return any(str(f) in value for f in _as_list(filter_))


def date_filter(filter_: Any, value: Any) -> bool:
    """Check a date against a filter.

    A single date matches any time on the same (UTC) day; several dates match
    anything between the earliest and the latest, inclusive.
    """
    try:
        dates = [d for d in (coerce_datetime(f) for f in _as_list(filter_)) if d is not None]
    except (TypeError, ValueError) as e:
        raise BoardError(f"Invalid date filter {filter_!r}: {e}", ErrorKind.INVALID_ARGUMENT) from e
    instant = coerce_datetime(value)
    if instant is None or not dates:
        return False
    if len(dates) == 1:
        return instant.astimezone(UTC).date() == dates[0].astimezone(UTC).date()
    return min(dates) <= instant <= max(dates)


def number_filter(filter_: Any, value: Any) -> bool:
    """Check if a number lies between the smallest and largest filter values.

    A single number (or a one-element list) is an equality test. An empty
    list matches nothing.
    """
    try:
        numbers = [float(n) for n in _as_list(filter_)]
        number = float(value)
    except (TypeError, ValueError):
        return False
    if not numbers:
        return False
    return min(numbers) <= number <= max(numbers)


class FilterService:
    """Applies a filter spec (field name -> value or list of values) to tasks.

    Every key must match (AND). How a key matches depends on its field type:
    strings by substring, dates by day or range, numbers by range and
    booleans by equality. A task with no value for a field fails that key;
    keys that name no known field are ignored.
    """

    def filter_tasks(
        self,
        index: Index,
        tasks: Iterable[Task] | Mapping[str, Task],
        filters: Mapping[str, Any] | None,
    ) -> TaskMap:
        """Return the tasks that match every filter, in their original order."""
        task_map = as_task_map(tasks)
        if not filters:
            return task_map

        registry = FieldRegistry.for_index(index)
        checks: list[tuple[FieldAccessor, Any]] = []
        for key, filter_value in filters.items():
            accessor = registry.get(key)
            if accessor is None:
                logger.debug("Ignoring filter on unknown field %r", key)
                continue
            checks.append((accessor, filter_value))

        return {
            task_id: task
            for task_id, task in task_map.items()
            if all(self._matches(accessor, value, task, index) for accessor, value in checks)
        }

    def _matches(self, accessor: FieldAccessor, filter_value: Any, task: Task, index: Index) -> bool:
        value = accessor.get(task, index)
        if value is None:
            return False

        if accessor.kind == FieldType.BOOLEAN:
            if isinstance(filter_value, str):
                filter_value = filter_value.strip().lower() in ("true", "yes", "1")
            return value == filter_value
        if accessor.kind == FieldType.NUMBER:
            return number_filter(filter_value, value)
        if accessor.kind == FieldType.DATE:
            return date_filter(filter_value, value)
        return string_filter(filter_value, str(value))
