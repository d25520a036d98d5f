"""Workload, progress and time-window statistics for tasks.

Workload is a task's size. It comes from weighted tags (``task_workload_tags``
in the board options, e.g. ``Small: 2``); a task with no weighted tag gets
``default_task_workload``. Burndown helpers work on ``BurndownTask``
snapshots, whose dates have already been resolved and optionally normalised.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from ..errors import BoardError, ErrorKind
from ..models import DateResolution, HydratedTask, Index, Task
from ..utils import coerce_datetime, humanize_duration, now_utc

# Fields that sprint and period statistics report on, besides date custom fields
PERIOD_FIELDS = ("created", "started", "completed", "due")


def task_completed(index: Index, task: Task) -> bool:
    """A task is completed if it sits in a completed column or has a completed date."""
    column = index.find_task_column(task.id)
    in_completed_column = column is not None and column in index.options.completed_columns
    return in_completed_column or bool(task.metadata.completed)


def task_workload(index: Index, task: Task) -> float:
    """Sum of the task's weighted tags, or the default workload if it has none."""
    workload: float = 0
    has_workload_tags = False
    for tag, weight in index.options.task_workload_tags.items():
        if tag in task.metadata.tags:
            workload += weight
            has_workload_tags = True
    if not has_workload_tags:
        workload = index.options.default_task_workload
    return workload


def task_progress(index: Index, task: Task) -> float:
    """Progress between 0 and 1; completed tasks are always 1."""
    if task_completed(index, task):
        return 1.0
    return task.metadata.progress or 0


def metadata_date(task: Task, field_name: str) -> datetime | None:
    """Read a date from built-in or custom metadata."""
    value = task.metadata.get(field_name)
    if isinstance(value, bool):
        return None
    try:
        return coerce_datetime(value)
    except (TypeError, ValueError):
        return None


# --- Workload in a period ---


@dataclass
class PeriodTask:
    """A task counted in a period."""

    id: str
    column: str | None
    workload: float


@dataclass
class PeriodWorkload:
    """Tasks whose date field falls in a period, and their total workload."""

    tasks: list[PeriodTask] = field(default_factory=list)
    workload: float = 0


def task_workload_in_period(
    tasks: Iterable[HydratedTask], date_field: str, start: datetime, end: datetime
) -> PeriodWorkload:
    """Collect tasks whose ``date_field`` lies in ``[start, end]``."""
    result = PeriodWorkload()
    for task in tasks:
        value = metadata_date(task, date_field)
        if value is None or not (start <= value <= end):
            continue
        result.tasks.append(PeriodTask(id=task.id, column=task.column, workload=task.workload))
        result.workload += task.workload
    return result


def _period_workloads(
    index: Index, tasks: Sequence[HydratedTask], start: datetime, end: datetime
) -> tuple[dict[str, PeriodWorkload], dict[str, PeriodWorkload]]:
    builtin = {name: task_workload_in_period(tasks, name, start, end) for name in PERIOD_FIELDS}
    custom = {
        f.name: task_workload_in_period(tasks, f.name, start, end)
        for f in index.options.date_custom_fields
    }
    return builtin, custom


# --- Burndown ---


@dataclass
class BurndownTask:
    """A task as plotted on a burndown chart.

    ``started`` and ``completed`` are None when the task hasn't been started
    or completed.
    """

    id: str
    column: str | None
    workload: float
    progress: float
    assigned: str | None
    created: datetime
    started: datetime | None = None
    completed: datetime | None = None


@dataclass
class TaskEvent:
    """Something that happened to a task at an instant."""

    event_type: str  # "created", "started" or "completed"
    task: BurndownTask


def get_active_tasks_at_date(tasks: Iterable[BurndownTask], date: datetime) -> list[BurndownTask]:
    """Tasks started at or before ``date`` and not completed by then."""
    return [
        task
        for task in tasks
        if task.started is not None
        and task.started <= date
        and (task.completed is None or task.completed > date)
    ]


def get_workload_at_date(tasks: Iterable[BurndownTask], date: datetime) -> float:
    return sum(task.workload for task in get_active_tasks_at_date(tasks, date))


def count_active_tasks_at_date(tasks: Iterable[BurndownTask], date: datetime) -> int:
    return len(get_active_tasks_at_date(tasks, date))


def get_task_events_at_date(tasks: Sequence[BurndownTask], date: datetime) -> list[TaskEvent]:
    """Tasks created, started or completed at exactly ``date``."""
    events: list[TaskEvent] = []
    for event_type in ("created", "started", "completed"):
        events.extend(
            TaskEvent(event_type=event_type, task=task)
            for task in tasks
            if getattr(task, event_type) == date
        )
    return events


def normalise_date(
    date: datetime, resolution: DateResolution | str = DateResolution.MINUTES
) -> datetime:
    """Truncate a date to a resolution.

    Each resolution clears its own unit's fractions and everything finer:
    days clears hours down to microseconds, seconds only clears microseconds.
    """
    resolution = DateResolution(resolution)
    replace: dict[str, int] = {"microsecond": 0}
    if resolution in (DateResolution.MINUTES, DateResolution.HOURS, DateResolution.DAYS):
        replace["second"] = 0
    if resolution in (DateResolution.HOURS, DateResolution.DAYS):
        replace["minute"] = 0
    if resolution == DateResolution.DAYS:
        replace["hour"] = 0
    return date.replace(**replace)


def auto_resolution(delta: timedelta) -> DateResolution:
    """Pick a resolution suited to the length of a chart."""
    if delta >= timedelta(days=7):
        return DateResolution.DAYS
    if delta >= timedelta(days=1):
        return DateResolution.HOURS
    if delta >= timedelta(hours=1):
        return DateResolution.MINUTES
    return DateResolution.SECONDS


# --- Sprints and periods ---


def find_sprint_index(index: Index, sprint: int | str | None) -> int:
    """Resolve a sprint number (1-based), name or None (current) to a list index."""
    sprints = index.options.sprints
    if sprint is None:
        return len(sprints) - 1
    if isinstance(sprint, int) and not isinstance(sprint, bool):
        if sprint < 1 or sprint > len(sprints):
            raise BoardError(
                f"Sprint {sprint} does not exist", ErrorKind.SPRINT_NOT_FOUND, sprint=sprint
            )
        return sprint - 1
    if isinstance(sprint, str):
        for i, s in enumerate(sprints):
            if s.name == sprint:
                return i
        raise BoardError(
            f'No sprint found with name "{sprint}"', ErrorKind.SPRINT_NOT_FOUND, sprint=sprint
        )
    raise BoardError(f'Invalid sprint "{sprint}"', ErrorKind.INVALID_ARGUMENT, sprint=sprint)


def sprint_window(
    index: Index, sprint_index: int, now: datetime | None = None
) -> tuple[datetime, datetime]:
    """A sprint runs from its start until the next sprint's start, or now."""
    sprints = index.options.sprints
    start = sprints[sprint_index].start
    if sprint_index == len(sprints) - 1:
        return start, now or now_utc()
    return start, sprints[sprint_index + 1].start


@dataclass
class SprintStats:
    """Workload statistics for one sprint.

    ``end`` and ``current`` are only set for past sprints; the current sprint
    is still running.
    """

    number: int
    name: str
    start: datetime
    duration: timedelta
    duration_message: str
    created: PeriodWorkload
    started: PeriodWorkload
    completed: PeriodWorkload
    due: PeriodWorkload
    end: datetime | None = None
    current: int | None = None
    description: str | None = None
    custom: dict[str, PeriodWorkload] = field(default_factory=dict)


def calculate_sprint_stats(
    index: Index,
    tasks: Sequence[HydratedTask],
    sprint: int | str | None = None,
    now: datetime | None = None,
) -> SprintStats | None:
    """Statistics for a sprint (number, name, or None for the current one).

    Returns None if the board has no sprints.
    """
    sprints = index.options.sprints
    if not sprints:
        return None

    sprint_index = find_sprint_index(index, sprint)
    current_index = len(sprints) - 1
    start, end = sprint_window(index, sprint_index, now)
    builtin, custom = _period_workloads(index, tasks, start, end)
    duration = end - start

    stats = SprintStats(
        number=sprint_index + 1,
        name=sprints[sprint_index].name,
        start=start,
        duration=duration,
        duration_message=humanize_duration(duration),
        description=sprints[sprint_index].description or None,
        custom=custom,
        **builtin,
    )
    if sprint_index != current_index:
        stats.end = end
        stats.current = current_index + 1
    return stats


@dataclass
class PeriodStats:
    """Workload statistics between two instants."""

    start: datetime
    end: datetime
    created: PeriodWorkload
    started: PeriodWorkload
    completed: PeriodWorkload
    due: PeriodWorkload
    custom: dict[str, PeriodWorkload] = field(default_factory=dict)


def parse_dates(dates: Sequence[Any]) -> list[datetime]:
    """Parse a list of period dates, skipping blanks."""
    try:
        instants = [coerce_datetime(d) for d in dates]
    except (TypeError, ValueError) as e:
        raise BoardError(f"Invalid date {dates!r}: {e}", ErrorKind.INVALID_ARGUMENT) from e
    instants = [instant for instant in instants if instant is not None]
    if not instants:
        raise BoardError(f"Invalid date {dates!r}", ErrorKind.INVALID_ARGUMENT)
    return instants


def calculate_period_stats(
    index: Index, tasks: Sequence[HydratedTask], dates: Sequence[Any] | None
) -> PeriodStats | None:
    """Statistics for a period.

    A single date covers that whole UTC day; several dates cover the span
    from the earliest to the latest. Returns None if no dates are given.
    """
    if not dates:
        return None

    instants = parse_dates(dates)
    if len(instants) == 1:
        day = instants[0].astimezone(UTC)
        start = day.replace(hour=0, minute=0, second=0, microsecond=0)
        end = day.replace(hour=23, minute=59, second=59, microsecond=999999)
    else:
        start, end = min(instants), max(instants)

    builtin, custom = _period_workloads(index, tasks, start, end)
    return PeriodStats(start=start, end=end, custom=custom, **builtin)
