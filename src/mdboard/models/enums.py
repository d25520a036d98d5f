"""Enums for board options."""

from enum import Enum


class FieldType(str, Enum):
    """Value types a task field can have."""

    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    DATE = "date"


class UpdateDatePolicy(str, Enum):
    """When a column-linked date field is set to the current date."""

    NONE = "none"
    ONCE = "once"  # Only if the field is not already set
    ALWAYS = "always"


class SortOrder(str, Enum):
    """Direction of a column sorter."""

    ASCENDING = "ascending"
    DESCENDING = "descending"


class DateResolution(str, Enum):
    """Precision that burndown dates are truncated to."""

    DAYS = "days"
    HOURS = "hours"
    MINUTES = "minutes"
    SECONDS = "seconds"
