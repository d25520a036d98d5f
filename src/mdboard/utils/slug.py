"""Utilities for generating task ids and filenames."""

import re
import unicodedata

TASK_EXTENSION = ".md"


def slugify(text: str) -> str:
    """
    Convert text to a filesystem-safe slug.

    Example: "Fix Login Bug!" -> "fix-login-bug"
    """
    # Normalize unicode characters
    text = unicodedata.normalize("NFKD", text)
    text = text.encode("ascii", "ignore").decode("ascii")

    # Convert to lowercase
    text = text.lower()

    # Replace spaces and underscores with hyphens
    text = re.sub(r"[\s_]+", "-", text)

    # Remove any character that isn't alphanumeric or hyphen
    text = re.sub(r"[^a-z0-9\-]", "", text)

    # Remove leading/trailing hyphens and collapse multiple hyphens
    text = re.sub(r"-+", "-", text).strip("-")

    return text


def task_id_from_name(name: str) -> str:
    """Derive the task id from a task name ("Fix Login Bug!" -> "fix-login-bug")."""
    return slugify(name)


def strip_extension(task_id: str) -> str:
    """Remove a trailing .md from a task id, if present."""
    return task_id.removesuffix(TASK_EXTENSION)


def task_filename(task_id: str) -> str:
    """Get the markdown filename for a task id."""
    return f"{strip_extension(task_id)}{TASK_EXTENSION}"
