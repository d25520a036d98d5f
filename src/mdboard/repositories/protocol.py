"""Store protocol for board persistence backends."""

from typing import Any, Protocol

from ..models import Index, Task


class TaskStore(Protocol):
    """Interface for board persistence.

    A store holds one index document, one document per task, an optional
    archive of task documents and an optional separate options (config)
    document. Task ids never carry a file extension.

    Read failures raise BoardError with kind ACCESS (the document could not
    be read) or PARSE (it could not be understood).
    """

    def initialised(self) -> bool:
        """Check if a board index exists."""
        ...

    def initialise(self, index: Index) -> None:
        """Create the board storage and write the first index."""
        ...

    def load_index(self) -> Index:
        """Load the index document as stored (options not merged)."""
        ...

    def save_index(self, index: Index, include_options: bool = True) -> None:
        """Overwrite the index document.

        Args:
            index: The index to write.
            include_options: False when the options live in the config
                document instead.
        """
        ...

    def load_task(self, task_id: str) -> Task:
        """Load a task document."""
        ...

    def save_task(self, task: Task) -> None:
        """Create or overwrite the document for ``task.id``."""
        ...

    def task_exists(self, task_id: str) -> bool:
        ...

    def list_task_ids(self) -> set[str]:
        """Ids of every task document, tracked or not."""
        ...

    def rename_task_file(self, old_task_id: str, new_task_id: str) -> None:
        ...

    def delete_task_file(self, task_id: str) -> None:
        """Delete a task document. Missing documents are ignored."""
        ...

    def config_exists(self) -> bool:
        """Check if options are persisted in a separate config document."""
        ...

    def get_config(self) -> dict[str, Any] | None:
        """Load the separate options document, or None if there isn't one."""
        ...

    def save_config(self, options: dict[str, Any]) -> None:
        ...

    def archive_exists(self) -> bool:
        ...

    def archived_task_exists(self, task_id: str) -> bool:
        ...

    def load_archived_task(self, task_id: str) -> Task:
        ...

    def save_archived_task(self, task: Task) -> None:
        ...

    def delete_archived_task_file(self, task_id: str) -> None:
        ...

    def list_archived_task_ids(self) -> set[str]:
        ...

    def remove_all(self) -> None:
        """Delete the board: index, task documents and archive."""
        ...
