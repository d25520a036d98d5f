"""Service for sorting tasks and board columns by field values."""

from __future__ import annotations

import logging
import re
import unicodedata
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from functools import cmp_to_key
from typing import Any

from pydantic import ValidationError

from ..errors import BoardError, ErrorKind
from ..models import Index, SortOrder, Sorter, Task, TaskMap, as_task_map
from .fields import FieldRegistry, canonical_field_name

logger = logging.getLogger(__name__)

# Decorated fields that read as an empty string when a task has no value
BLANK_WHEN_MISSING = ("created", "updated", "started", "completed", "due", "assigned")


def parse_sorters(raw: Any) -> list[Sorter]:
    """Validate a sorter list as written in the board options.

    Items may be Sorter models, mappings or bare field names.
    """
    if not isinstance(raw, (list, tuple)):
        raise BoardError(
            f"Sorters must be a list, got {type(raw).__name__}", ErrorKind.INVALID_ARGUMENT
        )

    sorters: list[Sorter] = []
    for item in raw:
        try:
            if isinstance(item, Sorter):
                sorter = item
            elif isinstance(item, str):
                sorter = Sorter(field=item)
            else:
                sorter = Sorter.model_validate(item)
            if sorter.filter:
                re.compile(sorter.filter)
        except (ValidationError, re.error) as e:
            raise BoardError(f"Invalid sorter {item!r}: {e}", ErrorKind.INVALID_ARGUMENT) from e
        sorters.append(sorter)
    return sorters


def sort_filter(value: Any, pattern: str) -> str:
    """Extract the sortable part of a value with a regular expression.

    Every match contributes its named groups joined together, or else its
    first group if that matched something, or else the whole match. The
    contributions of all matches are joined.
    """
    text = "" if value is None else str(value)
    parts: list[str] = []
    for match in re.finditer(pattern, text, re.IGNORECASE):
        named = match.groupdict()
        if named:
            parts.append("".join(v or "" for v in named.values()))
        elif match.re.groups and match.group(1):
            parts.append(match.group(1))
        else:
            parts.append(match.group(0))
    return "".join(parts)


def _strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def _compare_strings(a: str, b: str) -> int:
    # Case never matters; accents only break ties between the same letters
    for key in (lambda s: _strip_accents(s).casefold(), str.casefold):
        key_a, key_b = key(a), key(b)
        if key_a != key_b:
            return -1 if key_a < key_b else 1
    return 0


def _as_number(value: Any) -> float:
    if isinstance(value, datetime):
        return value.timestamp()
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def compare_values(a: Any, b: Any) -> float:
    """Compare two field values.

    Negative if ``a`` sorts first, positive if ``b`` does, 0 if neither. A
    missing value reads as an empty string next to a string and as 0
    otherwise. Strings compare alphabetically ignoring case; anything else
    compares as a number (dates by timestamp).
    """
    if a is None and b is None:
        return 0
    if a is None:
        a = "" if isinstance(b, str) else 0
    if b is None:
        b = "" if isinstance(a, str) else 0

    if isinstance(a, str) and isinstance(b, str):
        return _compare_strings(a, b)
    return _as_number(a) - _as_number(b)


def _row_value(row: Mapping[str, Any], field: str) -> Any:
    if field in row:
        return row[field]
    return row.get(canonical_field_name(field))


def sort_tasks(
    rows: Iterable[Mapping[str, Any]], sorters: Sequence[Sorter]
) -> list[Mapping[str, Any]]:
    """Stable multi-key sort of decorated tasks.

    Sorters apply in order; when one compares two tasks as equal the next
    one decides. Equal means ``compare_values`` returns 0, so strings that
    differ only in case ("apple", "Apple") go on to the next sorter.
    Descending flips a sorter's comparison and nothing else.
    """

    def compare(a: Mapping[str, Any], b: Mapping[str, Any]) -> float:
        for sorter in sorters:
            value_a = _row_value(a, sorter.field)
            value_b = _row_value(b, sorter.field)
            if sorter.filter:
                value_a = sort_filter(value_a, sorter.filter)
                value_b = sort_filter(value_b, sorter.filter)
            result = compare_values(value_a, value_b)
            if result:
                return -result if sorter.order == SortOrder.DESCENDING else result
        return 0

    return sorted(rows, key=cmp_to_key(compare))


class SortService:
    """Sorts the tasks of a board column."""

    def decorate(
        self, index: Index, task: Task, registry: FieldRegistry | None = None
    ) -> dict[str, Any]:
        """Flatten a task into one sortable value per field."""
        registry = registry or FieldRegistry.for_index(index)
        row: dict[str, Any] = {}
        for accessor in registry:
            value = accessor.get(task, index)
            if value is None and accessor.name in BLANK_WHEN_MISSING:
                value = ""
            row[accessor.name] = value
        return row

    def sort(
        self,
        index: Index,
        tasks: Iterable[Task] | Mapping[str, Task],
        sorters: Sequence[Sorter] | Any,
    ) -> TaskMap:
        """Sort tasks, keyed by id in their sorted order."""
        by_id = {task.id: task for task in as_task_map(tasks).values()}
        parsed = parse_sorters(sorters)
        registry = FieldRegistry.for_index(index)
        rows = [self.decorate(index, task, registry) for task in by_id.values()]
        return {row["id"]: by_id[row["id"]] for row in sort_tasks(rows, parsed)}

    def sort_column_in_index(
        self,
        index: Index,
        tasks: Iterable[Task] | Mapping[str, Task],
        column: str,
        sorters: Sequence[Sorter] | Any,
    ) -> Index:
        """Sort ``tasks`` and make their order the column's order."""
        if not index.has_column(column):
            raise BoardError(
                f'Column "{column}" doesn\'t exist', ErrorKind.COLUMN_NOT_FOUND, column=column
            )
        parsed = parse_sorters(sorters)
        index.columns[column] = list(self.sort(index, tasks, parsed))
        logger.debug("Sorted column %r by %s", column, [s.field for s in parsed])
        return index
