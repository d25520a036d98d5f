"""Task domain model."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.datetime import coerce_datetime

# Metadata keys that hold dates on every task
DATE_FIELDS = ("created", "updated", "started", "completed", "due")


class SubTask(BaseModel):
    """A checklist item inside a task."""

    text: str
    completed: bool = False

    def as_line(self) -> str:
        """Render as a "[x] text" checklist line."""
        return f"[{'x' if self.completed else ' '}] {self.text}"


class Relation(BaseModel):
    """A typed link from one task to another (e.g. "blocks other-task")."""

    task: str
    type: str = ""

    def as_line(self) -> str:
        return f"{self.type} {self.task}"


class Comment(BaseModel):
    """A comment left on a task."""

    text: str
    author: str = ""
    date: datetime | None = None

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: Any) -> datetime | None:
        return coerce_datetime(v)

    def as_line(self) -> str:
        return f"{self.author} {self.text}"


class TaskMetadata(BaseModel):
    """Task metadata. Custom fields are kept as extra attributes."""

    model_config = ConfigDict(extra="allow")

    created: datetime | None = None
    updated: datetime | None = None
    started: datetime | None = None
    completed: datetime | None = None
    due: datetime | None = None
    assigned: str | None = None
    tags: list[str] = Field(default_factory=list)
    progress: float | None = None

    @field_validator(*DATE_FIELDS, mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> datetime | None:
        """Accept ISO strings, dates and naive datetimes (taken as UTC)."""
        return coerce_datetime(v)

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tags(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return [str(tag) for tag in v]

    def get(self, name: str, default: Any = None) -> Any:
        """Get a built-in or custom metadata value, or ``default`` if unset."""
        value = getattr(self, name, None)
        return default if value is None else value

    def set(self, name: str, value: Any) -> None:
        """Set a built-in or custom metadata value."""
        setattr(self, name, value)

    def unset(self, name: str) -> None:
        """Clear a built-in value, or remove a custom one entirely."""
        if self.model_extra is not None and name in self.model_extra:
            del self.model_extra[name]
        elif name in type(self).model_fields:
            setattr(self, name, [] if name == "tags" else None)

    @property
    def custom_fields(self) -> dict[str, Any]:
        """Metadata values that are not built-in fields."""
        return dict(self.model_extra or {})

    def to_frontmatter(self) -> dict[str, Any]:
        """Convert to a dict suitable for YAML front matter."""
        data = self.model_dump(mode="json", exclude_none=True)
        if not self.tags:
            data.pop("tags", None)
        return data


class Task(BaseModel):
    """A single task document."""

    id: str = ""  # Slug of the name, e.g. "fix-login-bug"
    name: str
    description: str = ""
    metadata: TaskMetadata = Field(default_factory=TaskMetadata)
    sub_tasks: list[SubTask] = Field(default_factory=list)
    relations: list[Relation] = Field(default_factory=list)
    comments: list[Comment] = Field(default_factory=list)

    def to_frontmatter(self) -> dict[str, Any]:
        """Convert to a dict suitable for YAML front matter.

        The description is the document body, so it is not included.
        """
        data: dict[str, Any] = {"name": self.name}
        data.update(self.metadata.to_frontmatter())
        if self.sub_tasks:
            data["sub_tasks"] = [s.model_dump(mode="json") for s in self.sub_tasks]
        if self.relations:
            data["relations"] = [r.model_dump(mode="json") for r in self.relations]
        if self.comments:
            data["comments"] = [
                c.model_dump(mode="json", exclude_none=True) for c in self.comments
            ]
        return data

    @classmethod
    def from_frontmatter(cls, task_id: str, metadata: dict, body: str) -> Task:
        """Create Task from parsed front matter."""
        metadata = dict(metadata)
        return cls(
            id=task_id,
            name=str(metadata.pop("name", None) or task_id),
            description=body.strip(),
            sub_tasks=metadata.pop("sub_tasks", None) or [],
            relations=metadata.pop("relations", None) or [],
            comments=metadata.pop("comments", None) or [],
            metadata=TaskMetadata(**metadata),
        )


class DueInfo(BaseModel):
    """How a task stands against its due date."""

    completed: bool
    completed_date: datetime | None = None
    due_date: datetime
    overdue: bool
    due_delta: timedelta  # Positive when past due
    due_message: str


class HydratedTask(Task):
    """A task with values derived from the index it is tracked in."""

    column: str | None = None
    workload: float = 0
    progress: float = 0
    remaining_workload: int = 0
    due_data: DueInfo | None = None


# Tasks keyed by id, in board order
TaskMap = dict[str, Task]


def as_task_map(tasks: Iterable[Task] | Mapping[str, Task]) -> TaskMap:
    """Normalise a collection of tasks into a TaskMap.

    Accepts an iterable of tasks (keyed by their ids) or a mapping of id to
    task; a task without an id takes its key.
    """
    if isinstance(tasks, Mapping):
        result: TaskMap = {}
        for key, task in tasks.items():
            if not task.id:
                task = task.model_copy(update={"id": key})
            result[key] = task
        return result
    return {task.id: task for task in tasks}
