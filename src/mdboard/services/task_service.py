"""Service for board commands: creating, moving, renaming and deleting tasks."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..errors import BoardError, ErrorKind
from ..models import (
    BoardOptions,
    Comment,
    DueInfo,
    HydratedTask,
    Index,
    Sprint,
    Task,
    TaskMap,
)
from ..repositories import TaskStore
from ..utils import humanize_duration, now_utc, strip_extension, task_id_from_name
from .filter_service import FilterService
from .index_service import IndexService
from .sort_service import SortService, parse_sorters
from .workload import task_completed, task_progress, task_workload

logger = logging.getLogger(__name__)

DEFAULT_COLUMNS = ["Backlog", "Todo", "In Progress", "Done"]
DEFAULT_OPTIONS: dict[str, Any] = {
    "started_columns": ["In Progress"],
    "completed_columns": ["Done"],
}


@dataclass
class ValidationIssue:
    """A document that failed to load. ``task_id`` is None for the index."""

    task_id: str | None
    message: str


class TaskService:
    """Commands that change tasks and keep the index consistent with them.

    Every command checks the board is initialised. Commands that take a task
    id accept it with or without the .md extension, and check that the task
    document exists and is (or isn't) in the index as the command expects.
    """

    def __init__(
        self,
        store: TaskStore,
        index_service: IndexService | None = None,
        filter_service: FilterService | None = None,
        sort_service: SortService | None = None,
    ) -> None:
        self.store = store
        self.sort_service = sort_service or SortService()
        self.index_service = index_service or IndexService(store, self.sort_service)
        self.filter_service = filter_service or FilterService()

    # --- Board ---

    def initialise(
        self,
        name: str | None = None,
        description: str | None = None,
        columns: list[str] | None = None,
        options: dict[str, Any] | None = None,
    ) -> Index:
        """Create a board, or update the settings of an existing one.

        On an existing board only the given settings change: options are
        merged and new columns are added after the existing ones.
        """
        if not self.store.initialised():
            config = self.store.get_config() or {}
            base_options = DEFAULT_OPTIONS if options is None else options
            index = Index(
                name=name or "Project Name",
                description=description or "",
                columns={column: [] for column in (columns or DEFAULT_COLUMNS)},
                options=BoardOptions.model_validate({**base_options, **config}),
            )
            self.store.initialise(index)
            logger.info("Initialised board %r", index.name)
        else:
            index = self.index_service.load_index()
            if name is not None:
                index.name = name
            if description is not None:
                index.description = description
            if options:
                index.options = BoardOptions.model_validate(
                    {**index.options.to_config(), **options}
                )
            for column in columns or []:
                index.columns.setdefault(column, [])
            logger.info("Updated board %r", index.name)

        self.index_service.save_index(index)
        return index

    def get_index(self) -> Index:
        self.require_initialised()
        return self.index_service.load_index()

    def remove_all(self) -> None:
        """Delete the board folder with its index, tasks and archive."""
        self.require_initialised()
        self.store.remove_all()
        logger.info("Board removed")

    # --- Queries ---

    def get_task(self, task_id: str) -> Task:
        """Load a task document, tracked or not."""
        self.require_initialised()
        task_id = strip_extension(task_id)
        self._require_task_file(task_id)
        return self.store.load_task(task_id)

    def task_exists(self, task_id: str) -> bool:
        """Check that a task has a document and is in the index."""
        self.require_initialised()
        task_id = strip_extension(task_id)
        if not self.store.task_exists(task_id):
            return False
        return self.index_service.load_index().contains(task_id)

    def find_task_column(self, task_id: str) -> str:
        self.require_initialised()
        task_id = strip_extension(task_id)
        self._require_task_file(task_id)
        index = self.index_service.load_index()
        self._require_indexed(index, task_id)
        return index.find_task_column(task_id)  # type: ignore[return-value]

    def find_tracked_tasks(self, column: str | None = None) -> list[str]:
        """Ids of tasks in the index, in board order."""
        self.require_initialised()
        return self.index_service.load_index().tracked_task_ids(column)

    def find_untracked_tasks(self) -> list[str]:
        """Ids of task documents that aren't in the index."""
        self.require_initialised()
        index = self.index_service.load_index()
        return sorted(self.store.list_task_ids() - set(index.tracked_task_ids()))

    def load_all_tracked_tasks(self, column: str | None = None) -> TaskMap:
        self.require_initialised()
        index = self.index_service.load_index()
        return self.index_service.load_tracked_tasks(index, column)

    def search(
        self, filters: dict[str, Any] | None = None, quiet: bool = False
    ) -> list[str] | list[HydratedTask]:
        """Find tracked tasks matching every filter.

        Returns task ids when ``quiet``, otherwise hydrated tasks.
        """
        self.require_initialised()
        index = self.index_service.load_index()
        tasks = self.index_service.load_tracked_tasks(index)
        matches = self.filter_service.filter_tasks(index, tasks, filters)
        if quiet:
            return list(matches)
        now = now_utc()
        return [self.hydrate_task(index, task, now) for task in matches.values()]

    def filter_and_sort_tasks(
        self,
        index: Index,
        tasks: Iterable[Task] | Mapping[str, Task],
        filters: dict[str, Any] | None,
        sorters: list[Any],
    ) -> TaskMap:
        """Tasks matching every filter, in sorter order."""
        matches = self.filter_service.filter_tasks(index, tasks, filters)
        return self.sort_service.sort(index, matches, sorters)

    def hydrate_task(self, index: Index, task: Task, now: datetime | None = None) -> HydratedTask:
        """Add the column, workload, progress and due date status to a task."""
        now = now or now_utc()
        completed = task_completed(index, task)
        workload = task_workload(index, task)
        progress = task_progress(index, task)

        due_data = None
        if task.metadata.due is not None:
            completed_date = task.metadata.completed
            delta = (completed_date or now) - task.metadata.due
            past_due = delta.total_seconds() > 0
            message = "Completed " if completed else ""
            message += f"{humanize_duration(delta)} {'overdue' if past_due else 'remaining'}"
            due_data = DueInfo(
                completed=completed,
                completed_date=completed_date,
                due_date=task.metadata.due,
                overdue=not completed and past_due,
                due_delta=delta,
                due_message=message,
            )

        data = {
            **dict(task),
            "column": index.find_task_column(task.id),
            "workload": workload,
            "progress": progress,
            "remaining_workload": math.ceil(workload * (1 - progress)),
            "due_data": due_data,
        }
        return HydratedTask.model_validate(data)

    # --- Task commands ---

    def create_task(self, task: Task, column: str) -> str:
        """Save a new task document and add it to the end of a column.

        Returns the new task's id, derived from its name.
        """
        self.require_initialised()
        task_id = self._require_name(task.name)
        if self.store.task_exists(task_id):
            raise BoardError(
                f'A task with id "{task_id}" already exists',
                ErrorKind.DUPLICATE_TASK_ID,
                task_id=task_id,
            )

        index = self.index_service.load_index()
        self._require_column(index, column)
        if index.contains(task_id):
            raise BoardError(
                f'A task with id "{task_id}" is already in the index',
                ErrorKind.TASK_ALREADY_INDEXED,
                task_id=task_id,
            )

        task = task.model_copy(update={"id": task_id}, deep=True)
        task.metadata.created = now_utc()
        self.index_service.update_column_linked_custom_fields(index, task, column)
        self.store.save_task(task)

        index.add_task(task_id, column)
        self.index_service.save_index(index)
        logger.info("Task created: %s in %r", task_id, column)
        return task_id

    def add_untracked_task_to_index(self, task_id: str, column: str) -> str:
        """Add an existing task document to the end of a column."""
        self.require_initialised()
        task_id = strip_extension(task_id)
        self._require_task_file(task_id)

        index = self.index_service.load_index()
        self._require_column(index, column)
        if index.contains(task_id):
            raise BoardError(
                f'Task "{task_id}" is already in the index',
                ErrorKind.TASK_ALREADY_INDEXED,
                task_id=task_id,
            )

        task = self.store.load_task(task_id)
        self.index_service.update_column_linked_custom_fields(index, task, column)
        self.store.save_task(task)

        index.add_task(task_id, column)
        self.index_service.save_index(index)
        logger.info("Untracked task added: %s to %r", task_id, column)
        return task_id

    def update_task(self, task_id: str, task: Task, column: str | None = None) -> str:
        """
        Overwrite a task with new data, optionally moving it to a column.

        A changed name renames the task first. Returns the (possibly new)
        task id.
        """
        self.require_initialised()
        task_id = strip_extension(task_id)
        self._require_task_file(task_id)
        index = self.index_service.load_index()
        self._require_indexed(index, task_id)
        self._require_name(task.name)
        if column is not None:
            self._require_column(index, column)

        current = self.store.load_task(task_id)
        if task.name != current.name:
            task_id = self.rename_task(task_id, task.name)
            index = self.index_service.load_index()

        task = task.model_copy(update={"id": task_id}, deep=True)
        task.metadata.updated = now_utc()
        self.store.save_task(task)
        logger.info("Task updated: %s", task_id)

        if column is not None:
            return self.move_task(task_id, column)
        self.index_service.save_index(index)
        return task_id

    def rename_task(self, task_id: str, new_name: str) -> str:
        """Change a task's name, renaming its document and index entry.

        Returns the new task id.
        """
        self.require_initialised()
        task_id = strip_extension(task_id)
        self._require_task_file(task_id)
        index = self.index_service.load_index()
        self._require_indexed(index, task_id)
        new_task_id = self._require_name(new_name)

        if new_task_id != task_id:
            if self.store.task_exists(new_task_id):
                raise BoardError(
                    f'A task with id "{new_task_id}" already exists',
                    ErrorKind.DUPLICATE_TASK_ID,
                    task_id=new_task_id,
                )
            if index.contains(new_task_id):
                raise BoardError(
                    f'A task with id "{new_task_id}" is already in the index',
                    ErrorKind.DUPLICATE_TASK_ID,
                    task_id=new_task_id,
                )

        task = self.store.load_task(task_id)
        task.name = new_name
        task.metadata.updated = now_utc()
        self.store.save_task(task)

        if new_task_id != task_id:
            self.store.rename_task_file(task_id, new_task_id)
            index.rename_task(task_id, new_task_id)
        self.index_service.save_index(index)
        logger.info("Task renamed: %s -> %s", task_id, new_task_id)
        return new_task_id

    def move_task(
        self,
        task_id: str,
        column: str,
        position: int | None = None,
        relative: bool = False,
    ) -> str:
        """
        Move a task to a column.

        Args:
            task_id: Task to move
            column: Target column
            position: Position in the target column, None to append
            relative: Treat position as an offset from the current position
        """
        self.require_initialised()
        task_id = strip_extension(task_id)
        self._require_task_file(task_id)
        index = self.index_service.load_index()
        self._require_indexed(index, task_id)
        self._require_column(index, column)

        old_column = index.find_task_column(task_id)
        task = self.store.load_task(task_id)
        self.index_service.update_column_linked_custom_fields(index, task, column)
        task.metadata.updated = now_utc()
        self.store.save_task(task)

        index.move_task(task_id, column, position, relative)
        self.index_service.save_index(index)
        logger.info("Task moved: %s (%s -> %s)", task_id, old_column, column)
        return task_id

    def delete_task(self, task_id: str, remove_file: bool = False) -> str:
        """Remove a task from the index, and its document if ``remove_file``."""
        self.require_initialised()
        task_id = strip_extension(task_id)
        self._require_task_file(task_id)
        index = self.index_service.load_index()
        self._require_indexed(index, task_id)

        index.remove_task(task_id)
        if remove_file:
            self.store.delete_task_file(task_id)
        self.index_service.save_index(index)
        logger.info("Task deleted: %s (file %s)", task_id, "removed" if remove_file else "kept")
        return task_id

    def comment(self, task_id: str, text: str, author: str = "") -> str:
        self.require_initialised()
        task_id = strip_extension(task_id)
        self._require_task_file(task_id)
        index = self.index_service.load_index()
        self._require_indexed(index, task_id)
        if not text:
            raise BoardError("Comment text cannot be empty", ErrorKind.INVALID_ARGUMENT)

        task = self.store.load_task(task_id)
        task.comments.append(Comment(text=text, author=author, date=now_utc()))
        self.store.save_task(task)
        logger.info("Comment added to %s", task_id)
        return task_id

    # --- Columns and sprints ---

    def sort(self, column: str, sorters: list[Any], save: bool = False) -> Index:
        """
        Sort a column.

        With ``save`` the sorters are stored in the board options and the
        column is kept sorted on every save. Otherwise the column is sorted
        once and any stored sorting for it is dropped.
        """
        self.require_initialised()
        index = self.index_service.load_index()
        self._require_column(index, column)
        parsed = parse_sorters(sorters)

        if save:
            index.options.column_sorting[column] = [
                sorter.model_dump(mode="json", exclude_none=True) for sorter in parsed
            ]
        else:
            index.options.column_sorting.pop(column, None)
            tasks = [self.store.load_task(task_id) for task_id in index.tracked_task_ids(column)]
            self.sort_service.sort_column_in_index(index, tasks, column, parsed)

        self.index_service.save_index(index)
        return index

    def start_sprint(
        self,
        name: str | None = None,
        description: str | None = None,
        start: datetime | None = None,
    ) -> Sprint:
        """Start a new sprint; it becomes the current sprint."""
        self.require_initialised()
        index = self.index_service.load_index()
        number = len(index.options.sprints) + 1
        sprint = Sprint(
            name=name or f"Sprint {number}",
            description=description or None,
            start=start or now_utc(),
        )
        index.options.sprints.append(sprint)
        self.index_service.save_index(index)
        logger.info("Sprint started: %s", sprint.name)
        return sprint

    # --- Archive ---

    def list_archived_tasks(self) -> list[str]:
        self.require_initialised()
        self._require_archive()
        return sorted(self.store.list_archived_task_ids())

    def archive_task(self, task_id: str) -> str:
        """Move a task to the archive, remembering its column."""
        self.require_initialised()
        task_id = strip_extension(task_id)
        self._require_task_file(task_id)
        if self.store.archived_task_exists(task_id):
            raise BoardError(
                f'An archived task with id "{task_id}" already exists',
                ErrorKind.ARCHIVE,
                task_id=task_id,
            )
        index = self.index_service.load_index()
        self._require_indexed(index, task_id)

        task = self.store.load_task(task_id)
        task.metadata.set("column", index.find_task_column(task_id))
        self.store.save_archived_task(task)

        self.delete_task(task_id, remove_file=True)
        logger.info("Task archived: %s", task_id)
        return task_id

    def restore_task(self, task_id: str, column: str | None = None) -> str:
        """
        Restore an archived task.

        It goes to ``column`` if given, else the column it was archived
        from, else the first column.
        """
        self.require_initialised()
        task_id = strip_extension(task_id)
        self._require_archive()
        if not self.store.archived_task_exists(task_id):
            raise BoardError(
                f'No archived task found with id "{task_id}"', ErrorKind.ARCHIVE, task_id=task_id
            )

        index = self.index_service.load_index()
        if index.contains(task_id):
            raise BoardError(
                f'There is already an indexed task with id "{task_id}"',
                ErrorKind.TASK_ALREADY_INDEXED,
                task_id=task_id,
            )
        if self.store.task_exists(task_id):
            raise BoardError(
                f'There is already an untracked task with id "{task_id}"',
                ErrorKind.DUPLICATE_TASK_ID,
                task_id=task_id,
            )
        if not index.columns:
            raise BoardError("No columns defined in the index", ErrorKind.COLUMN_NOT_FOUND)

        task = self.store.load_archived_task(task_id)
        target = column or task.metadata.get("column") or next(iter(index.columns))
        self._require_column(index, target)
        task.metadata.unset("column")

        self.index_service.update_column_linked_custom_fields(index, task, target)
        self.store.save_task(task)
        index.add_task(task_id, target)
        self.index_service.save_index(index)
        self.store.delete_archived_task_file(task_id)
        logger.info("Task restored: %s to %r", task_id, target)
        return task_id

    # --- Validation ---

    def validate(self, save: bool = False) -> list[ValidationIssue]:
        """
        Check that the index and every tracked task can be loaded.

        Stops at the index if it can't be loaded. With ``save`` every
        document is re-written in its canonical form.
        """
        self.require_initialised()
        try:
            index = self.index_service.load_index()
            if save:
                self.index_service.save_index(index)
        except BoardError as e:
            message = str(e)
            if not message.startswith("Unable to parse index"):
                message = f"Unable to parse index: {message}"
            return [ValidationIssue(task_id=None, message=message)]

        issues: list[ValidationIssue] = []
        for task_id in index.tracked_task_ids():
            try:
                task = self.store.load_task(task_id)
                if save:
                    self.store.save_task(task)
            except BoardError as e:
                issues.append(ValidationIssue(task_id=task_id, message=str(e)))

        if issues:
            logger.warning("Validation found %d issue(s)", len(issues))
        return issues

    # --- Checks ---

    def require_initialised(self) -> None:
        if not self.store.initialised():
            raise BoardError("Not initialised in this folder", ErrorKind.NOT_INITIALISED)

    def _require_task_file(self, task_id: str) -> None:
        if not self.store.task_exists(task_id):
            raise BoardError(
                f'No task file found with id "{task_id}"', ErrorKind.TASK_NOT_FOUND, task_id=task_id
            )

    def _require_indexed(self, index: Index, task_id: str) -> None:
        if not index.contains(task_id):
            raise BoardError(
                f'Task "{task_id}" is not in the index', ErrorKind.TASK_NOT_INDEXED, task_id=task_id
            )

    def _require_column(self, index: Index, column: str) -> None:
        if not index.has_column(column):
            raise BoardError(
                f'Column "{column}" doesn\'t exist', ErrorKind.COLUMN_NOT_FOUND, column=column
            )

    def _require_archive(self) -> None:
        if not self.store.archive_exists():
            raise BoardError("Archive folder doesn't exist", ErrorKind.ARCHIVE)

    def _require_name(self, name: str) -> str:
        """Check a task name is usable and return the id it maps to."""
        task_id = task_id_from_name(name or "")
        if not name or not name.strip() or not task_id:
            raise BoardError("Task name cannot be blank", ErrorKind.BLANK_NAME)
        return task_id
