"""Utility functions."""

from .datetime import coerce_datetime, from_iso, humanize_duration, now_utc, to_iso
from .slug import slugify, strip_extension, task_filename, task_id_from_name

__all__ = [
    "coerce_datetime",
    "from_iso",
    "humanize_duration",
    "now_utc",
    "slugify",
    "strip_extension",
    "task_filename",
    "task_id_from_name",
    "to_iso",
]
