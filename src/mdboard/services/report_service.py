"""Service for board status and burndown reports."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from typing import Any

from ..errors import BoardError, ErrorKind
from ..models import DateResolution, HydratedTask, Index, Sprint
from ..utils import now_utc
from .task_service import TaskService
from .workload import (
    BurndownTask,
    PeriodStats,
    SprintStats,
    TaskEvent,
    auto_resolution,
    calculate_period_stats,
    calculate_sprint_stats,
    count_active_tasks_at_date,
    find_sprint_index,
    get_task_events_at_date,
    get_workload_at_date,
    normalise_date,
    parse_dates,
    sprint_window,
    task_completed,
    task_progress,
    task_workload,
)

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

# Relation types counted by the relation metrics
PARENT_RELATION = "parent-of"
CHILD_RELATION = "child-of"


@dataclass
class WorkloadTotals:
    workload: float = 0
    remaining_workload: float = 0


@dataclass
class AssignedStats:
    """Tasks assigned to one person."""

    total: int = 0
    workload: float = 0
    remaining_workload: float = 0


@dataclass
class TaskWorkloadStats:
    workload: float
    progress: float
    remaining_workload: int
    completed: bool


@dataclass
class RelationMetrics:
    """How many tasks are parents or children of other tasks."""

    parent_tasks: int
    child_tasks: int


@dataclass
class DueTask:
    """A task with a due date, and how it stands against it."""

    task: str
    workload: float
    progress: float
    remaining_workload: int
    completed: bool
    completed_date: datetime | None
    due_date: datetime
    overdue: bool
    due_delta: timedelta
    due_message: str


@dataclass
class BoardStatus:
    """
    Board status report.

    Task counts are always present. The workload, assignment, relation, due,
    sprint and period sections are only filled in for a full (non-quiet)
    report; ``started_tasks`` and ``completed_tasks`` are None when the board
    has no started or completed columns.
    """

    name: str
    tasks: int
    column_tasks: dict[str, int]
    started_tasks: int | None = None
    completed_tasks: int | None = None
    untracked_tasks: list[str] | None = None
    total_workload: float | None = None
    total_remaining_workload: float | None = None
    column_workloads: dict[str, WorkloadTotals] = field(default_factory=dict)
    task_workloads: dict[str, TaskWorkloadStats] = field(default_factory=dict)
    assigned: dict[str, AssignedStats] = field(default_factory=dict)
    relation_metrics: RelationMetrics | None = None
    due_tasks: list[DueTask] | None = None
    sprint: SprintStats | None = None
    period: PeriodStats | None = None


@dataclass
class DataPoint:
    """One burndown sample: active workload ``y`` and task ``count`` at ``x``."""

    x: datetime
    y: float
    count: int
    events: list[TaskEvent] = field(default_factory=list)


@dataclass
class BurndownSeries:
    start: datetime
    end: datetime
    sprint: Sprint | None = None
    data_points: list[DataPoint] = field(default_factory=list)


def _count_in_columns(index: Index, columns: list[str]) -> int | None:
    if not columns:
        return None
    return sum(len(ids) for column, ids in index.columns.items() if column in columns)


class ReportService:
    """Builds status and burndown reports from the tracked tasks."""

    def __init__(self, task_service: TaskService) -> None:
        self.task_service = task_service
        self.index_service = task_service.index_service

    # --- Status ---

    def status(
        self,
        quiet: bool = False,
        untracked: bool = False,
        due: bool = False,
        sprint: int | str | None = None,
        dates: Sequence[Any] | None = None,
        now: datetime | None = None,
    ) -> BoardStatus | list[str]:
        """
        Report on the board.

        Args:
            quiet: Only count tasks; with ``untracked``, return just the
                untracked task filenames
            untracked: Include untracked task filenames
            due: Include due date status of tasks with a due date
            sprint: Sprint number or name to report on (default: current)
            dates: One date, or a range, to report workload for
        """
        self.task_service.require_initialised()
        index = self.index_service.load_index()

        result = BoardStatus(
            name=index.name,
            tasks=len(index.tracked_task_ids()),
            column_tasks={column: len(ids) for column, ids in index.columns.items()},
            started_tasks=_count_in_columns(index, index.options.started_columns),
            completed_tasks=_count_in_columns(index, index.options.completed_columns),
        )

        if untracked:
            result.untracked_tasks = [
                f"{task_id}.md" for task_id in self.task_service.find_untracked_tasks()
            ]
            if quiet:
                return result.untracked_tasks

        if quiet:
            return result

        now = now or now_utc()
        tasks = [
            self.task_service.hydrate_task(index, task, now)
            for task in self.index_service.load_tracked_tasks(index).values()
        ]

        if due:
            result.due_tasks = self._due_tasks(tasks)
        self._add_workloads(result, index, tasks)
        result.assigned = self._assigned_stats(tasks)
        result.relation_metrics = self._relation_metrics(tasks)
        result.sprint = calculate_sprint_stats(index, tasks, sprint, now)
        result.period = calculate_period_stats(index, tasks, dates)
        return result

    def _add_workloads(
        self, result: BoardStatus, index: Index, tasks: list[HydratedTask]
    ) -> None:
        result.total_workload = 0
        result.total_remaining_workload = 0
        result.column_workloads = {column: WorkloadTotals() for column in index.columns}

        for task in tasks:
            result.total_workload += task.workload
            result.total_remaining_workload += task.remaining_workload
            if task.column is not None:
                totals = result.column_workloads.setdefault(task.column, WorkloadTotals())
                totals.workload += task.workload
                totals.remaining_workload += task.remaining_workload
            result.task_workloads[task.id] = TaskWorkloadStats(
                workload=task.workload,
                progress=task.progress,
                remaining_workload=task.remaining_workload,
                completed=task_completed(index, task),
            )

    def _assigned_stats(self, tasks: list[HydratedTask]) -> dict[str, AssignedStats]:
        assigned: dict[str, AssignedStats] = {}
        for task in tasks:
            if not task.metadata.assigned:
                continue
            stats = assigned.setdefault(task.metadata.assigned, AssignedStats())
            stats.total += 1
            stats.workload += task.workload
            stats.remaining_workload += task.remaining_workload
        return assigned

    def _relation_metrics(self, tasks: list[HydratedTask]) -> RelationMetrics | None:
        def has_relation(task: HydratedTask, relation_type: str) -> bool:
            return any(r.type == relation_type for r in task.relations)

        parents = sum(1 for task in tasks if has_relation(task, PARENT_RELATION))
        children = sum(1 for task in tasks if has_relation(task, CHILD_RELATION))
        if not parents and not children:
            return None
        return RelationMetrics(parent_tasks=parents, child_tasks=children)

    def _due_tasks(self, tasks: list[HydratedTask]) -> list[DueTask]:
        return [
            DueTask(
                task=task.id,
                workload=task.workload,
                progress=task.progress,
                remaining_workload=task.remaining_workload,
                **task.due_data.model_dump(),
            )
            for task in tasks
            if task.due_data is not None
        ]

    # --- Burndown ---

    def burndown(
        self,
        sprints: Sequence[int | str] | None = None,
        dates: Sequence[Any] | None = None,
        assigned: str | None = None,
        columns: Sequence[str] | None = None,
        normalise: DateResolution | str | None = None,
        now: datetime | None = None,
    ) -> list[BurndownSeries]:
        """
        Burndown series of active workload over time.

        With no sprints or dates, plots the current sprint, or all time if
        the board has no sprints. One date plots from that date until now.

        Args:
            sprints: Sprint numbers or names to plot
            dates: Date range to plot
            assigned: Only count tasks assigned to this person
            columns: Only count tasks in these columns
            normalise: Date resolution, or "auto" to pick one from the
                length of the first series
        """
        self.task_service.require_initialised()
        index = self.index_service.load_index()
        now = now or now_utc()

        tasks = [
            snapshot
            for snapshot in self._burndown_tasks(index)
            if (assigned is None or snapshot.assigned == assigned)
            and (columns is None or snapshot.column in columns)
        ]
        series = self._burndown_windows(index, tasks, sprints, dates, now)

        if normalise is not None:
            resolution = (
                auto_resolution(series[0].end - series[0].start)
                if normalise == "auto"
                else DateResolution(normalise)
            )
            logger.debug("Normalising burndown dates to %s", resolution.value)
            for s in series:
                s.start = normalise_date(s.start, resolution)
                s.end = normalise_date(s.end, resolution)
            tasks = [self._normalise_task(task, resolution) for task in tasks]

        for s in series:
            instants = [s.start, s.end]
            for task in tasks:
                instants += [
                    instant
                    for instant in (task.created, task.started, task.completed)
                    if instant is not None and s.start <= instant <= s.end
                ]
            s.data_points = [
                DataPoint(
                    x=instant,
                    y=get_workload_at_date(tasks, instant),
                    count=count_active_tasks_at_date(tasks, instant),
                    events=get_task_events_at_date(tasks, instant),
                )
                for instant in sorted(set(instants))
            ]
        return series

    def _burndown_tasks(self, index: Index) -> list[BurndownTask]:
        snapshots: list[BurndownTask] = []
        for task in self.index_service.load_tracked_tasks(index).values():
            column = index.find_task_column(task.id)
            created = task.metadata.created or EPOCH
            started = task.metadata.started
            if started is None and column in index.options.started_columns:
                started = created
            completed = task.metadata.completed
            if completed is None and column in index.options.completed_columns:
                completed = created
            snapshots.append(
                BurndownTask(
                    id=task.id,
                    column=column,
                    workload=task_workload(index, task),
                    progress=task_progress(index, task),
                    assigned=task.metadata.assigned,
                    created=created,
                    started=started,
                    completed=completed,
                )
            )
        return snapshots

    def _burndown_windows(
        self,
        index: Index,
        tasks: list[BurndownTask],
        sprints: Sequence[int | str] | None,
        dates: Sequence[Any] | None,
        now: datetime,
    ) -> list[BurndownSeries]:
        index_sprints = index.options.sprints

        if sprints is None and dates is None:
            if index_sprints:
                current = len(index_sprints) - 1
                return [
                    BurndownSeries(
                        start=index_sprints[current].start, end=now, sprint=index_sprints[current]
                    )
                ]
            instants = [
                instant
                for task in tasks
                for instant in (task.created, task.started, task.completed)
                if instant is not None and instant != EPOCH
            ]
            return [BurndownSeries(start=min(instants, default=now), end=now)]

        series: list[BurndownSeries] = []
        if sprints is not None:
            if not index_sprints:
                raise BoardError("No sprints defined", ErrorKind.SPRINT_NOT_FOUND)
            for sprint in sprints:
                if sprint is None:
                    raise BoardError('Invalid sprint "None"', ErrorKind.INVALID_ARGUMENT)
                sprint_index = find_sprint_index(index, sprint)
                start, end = sprint_window(index, sprint_index, now)
                series.append(BurndownSeries(start=start, end=end, sprint=index_sprints[sprint_index]))

        if dates:
            instants = parse_dates(dates)
            end = now if len(instants) == 1 else max(instants)
            series.append(BurndownSeries(start=min(instants), end=end))

        if not series:
            raise BoardError("No sprints or dates to plot", ErrorKind.INVALID_ARGUMENT)
        return series

    def _normalise_task(self, task: BurndownTask, resolution: DateResolution) -> BurndownTask:
        return replace(
            task,
            created=normalise_date(task.created, resolution),
            started=normalise_date(task.started, resolution) if task.started else None,
            completed=normalise_date(task.completed, resolution) if task.completed else None,
        )
