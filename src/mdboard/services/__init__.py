"""Service layer for business logic."""

from .config_service import ConfigService
from .fields import FieldAccessor, FieldRegistry, canonical_field_name
from .filter_service import FilterService
from .index_service import IndexService
from .report_service import BoardStatus, BurndownSeries, DataPoint, ReportService
from .sort_service import SortService
from .task_service import TaskService, ValidationIssue

__all__ = [
    "BoardStatus",
    "BurndownSeries",
    "ConfigService",
    "DataPoint",
    "FieldAccessor",
    "FieldRegistry",
    "FilterService",
    "IndexService",
    "ReportService",
    "SortService",
    "TaskService",
    "ValidationIssue",
    "canonical_field_name",
]
