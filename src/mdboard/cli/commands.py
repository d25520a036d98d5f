"""The init, status and search commands."""

import logging

from ..config import Settings
from ..errors import BoardError, ErrorKind
from ..repositories import FilesystemStore
from ..services import ConfigService, ReportService, TaskService
from .output import emit, error, success

logger = logging.getLogger(__name__)


def build_services(settings: Settings) -> tuple[TaskService, ReportService]:
    """Wire the filesystem store and services for a project."""
    config_service = ConfigService(settings.project_root)
    store = FilesystemStore(settings.board_root, config_service)
    task_service = TaskService(store)
    return task_service, ReportService(task_service)


def parse_filters(pairs: list[str]) -> dict[str, str | list[str]]:
    """Turn ``field=value`` pairs into a filter spec.

    A field given more than once filters on the list of its values.
    """
    filters: dict[str, str | list[str]] = {}
    for pair in pairs:
        field, sep, value = pair.partition("=")
        if not sep or not field:
            raise BoardError(
                f'Invalid filter "{pair}", expected field=value', ErrorKind.INVALID_ARGUMENT
            )
        if field in filters:
            existing = filters[field]
            filters[field] = [*existing, value] if isinstance(existing, list) else [existing, value]
        else:
            filters[field] = value
    return filters


def run_init(settings: Settings, name: str | None, columns: list[str] | None) -> int:
    """Create a board, or update an existing one.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    task_service, _ = build_services(settings)
    try:
        index = task_service.initialise(name=name, columns=columns)
    except BoardError as e:
        error(str(e))
        return 1
    success(f"Board {index.name!r} ready in {settings.board_root}")
    return 0


def run_status(
    settings: Settings,
    quiet: bool = False,
    untracked: bool = False,
    due: bool = False,
    sprint: str | None = None,
    dates: list[str] | None = None,
) -> int:
    """Print the board status as JSON."""
    _, report_service = build_services(settings)
    sprint_key: int | str | None = int(sprint) if sprint and sprint.isdigit() else sprint
    try:
        result = report_service.status(
            quiet=quiet, untracked=untracked, due=due, sprint=sprint_key, dates=dates
        )
    except BoardError as e:
        error(str(e))
        return 1
    emit(result)
    return 0


def run_search(settings: Settings, filters: list[str], quiet: bool = False) -> int:
    """Print the tracked tasks matching every filter as JSON."""
    task_service, _ = build_services(settings)
    try:
        result = task_service.search(parse_filters(filters), quiet=quiet)
    except BoardError as e:
        error(str(e))
        return 1
    logger.info("Search matched %d task(s)", len(result))
    emit(result)
    return 0
