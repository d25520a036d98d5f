"""Index (board state) models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..errors import BoardError, ErrorKind
from ..utils.datetime import coerce_datetime
from .enums import FieldType, SortOrder, UpdateDatePolicy

DEFAULT_TASK_WORKLOAD = 2
DEFAULT_TASK_WORKLOAD_TAGS: dict[str, float] = {
    "Nothing": 0,
    "Tiny": 1,
    "Small": 2,
    "Medium": 3,
    "Large": 5,
    "Huge": 8,
}


class CustomField(BaseModel):
    """A user-declared metadata field."""

    name: str = Field(..., min_length=1)
    type: FieldType
    update_date: UpdateDatePolicy = UpdateDatePolicy.NONE


class Sprint(BaseModel):
    """A sprint; it runs until the next sprint starts."""

    name: str
    description: str | None = None
    start: datetime

    @field_validator("start", mode="before")
    @classmethod
    def parse_start(cls, v: Any) -> datetime | None:
        return coerce_datetime(v)


class Sorter(BaseModel):
    """One key of a column sort."""

    field: str = Field(..., min_length=1)
    order: SortOrder = SortOrder.ASCENDING
    filter: str | None = None  # Regex used to extract the sortable part


class BoardOptions(BaseModel):
    """Board-wide options.

    Extra keys are kept. Keys named ``<field>_columns`` link a date field
    (``started``, ``completed`` or a date custom field) to the columns that
    set it when a task enters them.
    """

    model_config = ConfigDict(extra="allow")

    custom_fields: list[CustomField] = Field(default_factory=list)
    sprints: list[Sprint] = Field(default_factory=list)
    started_columns: list[str] = Field(default_factory=list)
    completed_columns: list[str] = Field(default_factory=list)
    # Column name -> raw sorter list, validated when the column is sorted
    column_sorting: dict[str, Any] = Field(default_factory=dict)
    default_task_workload: float = DEFAULT_TASK_WORKLOAD
    task_workload_tags: dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_TASK_WORKLOAD_TAGS)
    )

    def linked_columns(self, field_name: str) -> list[str]:
        """Columns linked to a date field through ``<field>_columns``."""
        value = getattr(self, f"{field_name}_columns", None)
        if isinstance(value, list):
            return [str(column) for column in value]
        return []

    def get_custom_field(self, name: str) -> CustomField | None:
        """Get a custom field declaration by name."""
        for custom_field in self.custom_fields:
            if custom_field.name == name:
                return custom_field
        return None

    @property
    def date_custom_fields(self) -> list[CustomField]:
        return [f for f in self.custom_fields if f.type == FieldType.DATE]

    def to_config(self) -> dict[str, Any]:
        """Convert to a plain dict for YAML output."""
        return self.model_dump(mode="json", exclude_none=True)


class Index(BaseModel):
    """The board index: ordered columns of task ids, plus options.

    A task id appears in at most one column. The mutation methods below keep
    that invariant; they change the index in place and return it.
    """

    name: str = "Project Name"
    description: str = ""
    columns: dict[str, list[str]] = Field(default_factory=dict)
    options: BoardOptions = Field(default_factory=BoardOptions)

    @field_validator("columns", mode="before")
    @classmethod
    def fill_empty_columns(cls, v: Any) -> Any:
        """A column written without tasks loads as an empty list."""
        if isinstance(v, dict):
            return {str(name): list(ids or []) for name, ids in v.items()}
        return v

    # --- Queries ---

    def has_column(self, column: str) -> bool:
        return column in self.columns

    def contains(self, task_id: str) -> bool:
        """Check if a task id is tracked in any column."""
        return self.find_task_column(task_id) is not None

    def find_task_column(self, task_id: str) -> str | None:
        """Find the first column that contains a task id."""
        for column, task_ids in self.columns.items():
            if task_id in task_ids:
                return column
        return None

    def tracked_task_ids(self, column: str | None = None) -> list[str]:
        """Tracked task ids in board order, optionally for one column."""
        if column is not None:
            return list(self.columns.get(column, []))
        return [task_id for task_ids in self.columns.values() for task_id in task_ids]

    # --- Mutations ---

    def add_task(self, task_id: str, column: str, position: int | None = None) -> Index:
        """Add a task id to a column.

        ``position`` None, or at/after the end of the column, appends; any
        other position is clamped to 0 and inserted at.
        """
        self._require_column(column)

        # Remove from any existing column first
        self.remove_task(task_id)

        task_ids = self.columns[column]
        if position is None or position >= len(task_ids):
            task_ids.append(task_id)
        else:
            task_ids.insert(max(position, 0), task_id)
        return self

    def remove_task(self, task_id: str) -> Index:
        """Remove a task id from whichever column holds it."""
        for task_ids in self.columns.values():
            if task_id in task_ids:
                task_ids.remove(task_id)
        return self

    def rename_task(self, old_task_id: str, new_task_id: str) -> Index:
        """Replace a task id in place, keeping its position."""
        for task_ids in self.columns.values():
            for i, task_id in enumerate(task_ids):
                if task_id == old_task_id:
                    task_ids[i] = new_task_id
        return self

    def move_task(
        self,
        task_id: str,
        column: str,
        position: int | None = None,
        relative: bool = False,
    ) -> Index:
        """Move a tracked task to a column, optionally at a position.

        A relative position is an offset from the task's current position
        when staying in the same column, or from the top of another column.
        The position is clamped against the target column as it is before
        the task is taken out, then applied to the column after removal.
        ``position`` None appends.
        """
        current_column = self.find_task_column(task_id)
        if current_column is None:
            raise BoardError(
                f'Task "{task_id}" is not in the index',
                ErrorKind.TASK_NOT_INDEXED,
                task_id=task_id,
            )
        self._require_column(column)

        if position is not None:
            if relative:
                base = (
                    self.columns[current_column].index(task_id)
                    if column == current_column
                    else 0
                )
                position += base
            position = max(min(position, len(self.columns[column])), 0)

        self.remove_task(task_id)
        return self.add_task(task_id, column, position)

    def _require_column(self, column: str) -> None:
        if column not in self.columns:
            raise BoardError(
                f'Column "{column}" doesn\'t exist',
                ErrorKind.COLUMN_NOT_FOUND,
                column=column,
            )
