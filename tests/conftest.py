"""Shared fixtures: an in-memory store and board helpers."""

from datetime import UTC, datetime
from typing import Any

import pytest

from mdboard.errors import BoardError, ErrorKind
from mdboard.models import BoardOptions, Index, Task, TaskMetadata
from mdboard.services import TaskService
from mdboard.utils import task_id_from_name


class InMemoryStore:
    """TaskStore kept in dicts. Documents are copied in and out like files."""

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        self.index: Index | None = None
        self.index_has_options = True
        self.tasks: dict[str, Task] = {}
        self.broken_tasks: set[str] = set()
        self.archive: dict[str, Task] | None = None
        self.config = config

    def initialised(self) -> bool:
        return self.index is not None

    def initialise(self, index: Index) -> None:
        self.save_index(index)

    def load_index(self) -> Index:
        if self.index is None:
            raise BoardError("Couldn't access index file: missing", ErrorKind.ACCESS)
        return self.index.model_copy(deep=True)

    def save_index(self, index: Index, include_options: bool = True) -> None:
        stored = index.model_copy(deep=True)
        if not include_options:
            stored.options = BoardOptions()
        self.index = stored
        self.index_has_options = include_options

    def load_task(self, task_id: str) -> Task:
        if task_id in self.broken_tasks:
            raise BoardError("Unable to parse task: bad front matter", ErrorKind.PARSE)
        if task_id not in self.tasks:
            raise BoardError(f"Couldn't access task file: {task_id}", ErrorKind.ACCESS)
        return self.tasks[task_id].model_copy(deep=True)

    def save_task(self, task: Task) -> None:
        self.tasks[task.id] = task.model_copy(deep=True)
        self.broken_tasks.discard(task.id)

    def task_exists(self, task_id: str) -> bool:
        return task_id in self.tasks or task_id in self.broken_tasks

    def list_task_ids(self) -> set[str]:
        return set(self.tasks) | self.broken_tasks

    def rename_task_file(self, old_task_id: str, new_task_id: str) -> None:
        task = self.tasks.pop(old_task_id)
        task.id = new_task_id
        self.tasks[new_task_id] = task

    def delete_task_file(self, task_id: str) -> None:
        self.tasks.pop(task_id, None)

    def config_exists(self) -> bool:
        return self.config is not None

    def get_config(self) -> dict[str, Any] | None:
        return None if self.config is None else dict(self.config)

    def save_config(self, options: dict[str, Any]) -> None:
        self.config = dict(options)

    def archive_exists(self) -> bool:
        return self.archive is not None

    def archived_task_exists(self, task_id: str) -> bool:
        return self.archive is not None and task_id in self.archive

    def load_archived_task(self, task_id: str) -> Task:
        if not self.archived_task_exists(task_id):
            raise BoardError(f"Couldn't access task file: {task_id}", ErrorKind.ACCESS)
        return self.archive[task_id].model_copy(deep=True)  # type: ignore[index]

    def save_archived_task(self, task: Task) -> None:
        if self.archive is None:
            self.archive = {}
        self.archive[task.id] = task.model_copy(deep=True)

    def delete_archived_task_file(self, task_id: str) -> None:
        if self.archive is not None:
            self.archive.pop(task_id, None)

    def list_archived_task_ids(self) -> set[str]:
        return set(self.archive or {})

    def remove_all(self) -> None:
        self.index = None
        self.tasks = {}
        self.broken_tasks = set()
        self.archive = None


def utc(*args: int) -> datetime:
    """Shorthand for an aware UTC datetime."""
    return datetime(*args, tzinfo=UTC)


def make_task(name: str, task_id: str | None = None, **metadata: Any) -> Task:
    """Build a task; keyword arguments become metadata."""
    return Task(
        id=task_id or task_id_from_name(name),
        name=name,
        metadata=TaskMetadata(**metadata),
    )


def add_tracked(store: InMemoryStore, column: str, *tasks: Task) -> None:
    """Save tasks and append them to a column of the stored index."""
    assert store.index is not None
    for task in tasks:
        store.save_task(task)
        store.index.columns[column].append(task.id)


@pytest.fixture
def store() -> InMemoryStore:
    """An empty, uninitialised store."""
    return InMemoryStore()


@pytest.fixture
def task_service(store: InMemoryStore) -> TaskService:
    """A TaskService on an initialised board with the default columns."""
    service = TaskService(store)
    service.initialise(name="Test Board")
    return service
