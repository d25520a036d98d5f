"""Service for loading and saving the board index."""

from __future__ import annotations

import logging
from datetime import datetime

from ..errors import BoardError, ErrorKind
from ..models import BoardOptions, Index, Task, TaskMap, UpdateDatePolicy
from ..repositories import TaskStore
from ..utils import now_utc
from .sort_service import SortService, parse_sorters

logger = logging.getLogger(__name__)

# Built-in date fields that can be linked to columns, and how they update
LINKED_BUILTIN_FIELDS = (
    ("completed", UpdateDatePolicy.ONCE),
    ("started", UpdateDatePolicy.ONCE),
)


class IndexService:
    """Loads the index with its options merged in, and saves it re-sorted."""

    def __init__(self, store: TaskStore, sort_service: SortService | None = None) -> None:
        self.store = store
        self.sort_service = sort_service or SortService()

    def update_column_linked_custom_fields(
        self, index: Index, task: Task, column: str, now: datetime | None = None
    ) -> Task:
        """Stamp the date fields linked to ``column`` on a task.

        A field is linked through a ``<field>_columns`` option. ``once`` only
        sets the date if the task has none yet; ``always`` overwrites it.
        ``started`` and ``completed`` behave as ``once``.
        """
        now = now or now_utc()
        linked = list(LINKED_BUILTIN_FIELDS)
        linked += [(f.name, f.update_date) for f in index.options.date_custom_fields]

        for field_name, policy in linked:
            if column not in index.options.linked_columns(field_name):
                continue
            if policy == UpdateDatePolicy.ALWAYS or (
                policy == UpdateDatePolicy.ONCE and not task.metadata.get(field_name)
            ):
                task.metadata.set(field_name, now)
                logger.debug("Set %s on %s (column %r)", field_name, task.id, column)
        return task

    def load_index(self) -> Index:
        """Load the index; options in a config document override its own."""
        index = self.store.load_index()
        if self.store.config_exists():
            config = self.store.get_config() or {}
            options = {**index.options.to_config(), **config}
            try:
                index.options = BoardOptions.model_validate(options)
            except ValueError as e:
                raise BoardError(f"Unable to parse options: {e}", ErrorKind.PARSE) from e
        return index

    def load_tracked_tasks(self, index: Index, column: str | None = None) -> TaskMap:
        """Load tracked tasks in board order, skipping any that fail to load."""
        tasks: TaskMap = {}
        for task_id in index.tracked_task_ids(column):
            try:
                tasks[task_id] = self.store.load_task(task_id)
            except BoardError as e:
                logger.warning("Skipping task %s: %s", task_id, e)
        return tasks

    def save_index(self, index: Index, ignore_options: bool = False) -> None:
        """Re-sort columns with saved sorting, then write the index.

        A column whose sorting can't be applied is logged and left as it is.
        Options go to the config document when there is one, and the index
        is then written without them. ``ignore_options`` writes the index
        without options and leaves the config document alone.
        """
        for column, raw_sorters in index.options.column_sorting.items():
            if not index.has_column(column):
                logger.warning("Not sorting column %r: it doesn't exist", column)
                continue
            try:
                sorters = parse_sorters(raw_sorters)
                tasks = [self.store.load_task(task_id) for task_id in index.tracked_task_ids(column)]
                self.sort_service.sort_column_in_index(index, tasks, column, sorters)
            except Exception as e:
                logger.warning("Not sorting column %r: %s", column, e)

        include_options = not ignore_options
        if include_options and self.store.config_exists():
            self.store.save_config(index.options.to_config())
            include_options = False
        self.store.save_index(index, include_options=include_options)
        logger.debug("Saved index %r", index.name)
