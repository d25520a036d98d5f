"""Filesystem-based store for the board index and task documents."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, Any

import frontmatter
import yaml

from ..errors import BoardError, ErrorKind
from ..models import Index, Task
from ..utils import strip_extension, task_filename

if TYPE_CHECKING:
    from ..services.config_service import ConfigService

logger = logging.getLogger(__name__)

# Errors raised while turning a document into a model
_PARSE_ERRORS = (yaml.YAMLError, ValueError, TypeError)


class FilesystemStore:
    """
    Store for a board kept in a folder of markdown files.

    Layout (default names)::

        <project_root>/
            mdboard.yml          optional options file
            .mdboard/
                index.md         name, columns and options as front matter,
                                 description as body
                tasks/*.md       one task per file, YAML front matter
                archive/*.md     archived tasks
    """

    INDEX_FILE = "index.md"
    TASK_FOLDER = "tasks"
    ARCHIVE_FOLDER = "archive"

    def __init__(
        self,
        board_root: Path,
        config_service: ConfigService | None = None,
    ) -> None:
        """
        Initialize store.

        Args:
            board_root: Path to the board folder (e.g., .mdboard/)
            config_service: Optional config service for the separate options file
        """
        self.board_root = board_root
        self._config_service = config_service

    @property
    def index_path(self) -> Path:
        return self.board_root / self.INDEX_FILE

    @property
    def task_folder(self) -> Path:
        return self.board_root / self.TASK_FOLDER

    @property
    def archive_folder(self) -> Path:
        return self.board_root / self.ARCHIVE_FOLDER

    def get_task_path(self, task_id: str) -> Path:
        return self.task_folder / task_filename(task_id)

    def ensure_directory(self) -> None:
        """Create the board and task folders if they don't exist."""
        self.task_folder.mkdir(parents=True, exist_ok=True)

    # --- Index Operations ---

    def initialised(self) -> bool:
        return self.index_path.exists()

    def initialise(self, index: Index) -> None:
        self.ensure_directory()
        self.save_index(index)

    def load_index(self) -> Index:
        """Load and parse index.md."""
        try:
            text = self.index_path.read_text(encoding="utf-8")
        except OSError as e:
            raise BoardError(
                f"Couldn't access index file: {e}", ErrorKind.ACCESS, path=str(self.index_path)
            ) from e

        try:
            post = frontmatter.loads(text)
            data = dict(post.metadata)
            data.setdefault("description", post.content.strip())
            return Index(**data)
        except _PARSE_ERRORS as e:
            raise BoardError(
                f"Unable to parse index: {e}", ErrorKind.PARSE, path=str(self.index_path)
            ) from e

    def save_index(self, index: Index, include_options: bool = True) -> None:
        """Write index.md."""
        self.ensure_directory()

        metadata: dict[str, Any] = {"name": index.name, "columns": index.columns}
        if include_options:
            metadata["options"] = index.options.to_config()

        post = frontmatter.Post(index.description)
        post.metadata = metadata
        self._write(self.index_path, post)

    # --- Task Operations ---

    def load_task(self, task_id: str) -> Task:
        return self._load_task_file(self.get_task_path(task_id), strip_extension(task_id))

    def save_task(self, task: Task) -> None:
        self.ensure_directory()
        self._write(self.get_task_path(task.id), self._task_post(task))

    def task_exists(self, task_id: str) -> bool:
        return self.get_task_path(task_id).exists()

    def list_task_ids(self) -> set[str]:
        if not self.task_folder.exists():
            return set()
        return {path.stem for path in self.task_folder.glob("*.md")}

    def rename_task_file(self, old_task_id: str, new_task_id: str) -> None:
        self.get_task_path(old_task_id).rename(self.get_task_path(new_task_id))

    def delete_task_file(self, task_id: str) -> None:
        filepath = self.get_task_path(task_id)
        if filepath.exists():
            filepath.unlink()

    # --- Options Operations ---

    def config_exists(self) -> bool:
        return self._config_service is not None and self._config_service.config_exists()

    def get_config(self) -> dict[str, Any] | None:
        if self._config_service is None:
            return None
        return self._config_service.get_config()

    def save_config(self, options: dict[str, Any]) -> None:
        if self._config_service is None:
            raise BoardError("No config file configured", ErrorKind.ACCESS)
        self._config_service.save_config(options)

    # --- Archive Operations ---

    def archive_exists(self) -> bool:
        return self.archive_folder.exists()

    def archived_task_exists(self, task_id: str) -> bool:
        return (self.archive_folder / task_filename(task_id)).exists()

    def load_archived_task(self, task_id: str) -> Task:
        return self._load_task_file(
            self.archive_folder / task_filename(task_id), strip_extension(task_id)
        )

    def save_archived_task(self, task: Task) -> None:
        self.archive_folder.mkdir(parents=True, exist_ok=True)
        self._write(self.archive_folder / task_filename(task.id), self._task_post(task))

    def delete_archived_task_file(self, task_id: str) -> None:
        filepath = self.archive_folder / task_filename(task_id)
        if filepath.exists():
            filepath.unlink()

    def list_archived_task_ids(self) -> set[str]:
        if not self.archive_folder.exists():
            return set()
        return {path.stem for path in self.archive_folder.glob("*.md")}

    def remove_all(self) -> None:
        """Delete the board folder. A config file in the project root is kept."""
        try:
            shutil.rmtree(self.board_root)
        except OSError as e:
            raise BoardError(
                f"Couldn't remove board folder: {e}", ErrorKind.ACCESS, path=str(self.board_root)
            ) from e
        logger.debug("Removed %s", self.board_root)

    # --- Private Methods ---

    def _load_task_file(self, filepath: Path, task_id: str) -> Task:
        try:
            text = filepath.read_text(encoding="utf-8")
        except OSError as e:
            raise BoardError(
                f"Couldn't access task file: {e}", ErrorKind.ACCESS, task_id=task_id
            ) from e

        try:
            post = frontmatter.loads(text)
            return Task.from_frontmatter(task_id, post.metadata, post.content)
        except _PARSE_ERRORS as e:
            raise BoardError(
                f"Unable to parse task: {e}", ErrorKind.PARSE, task_id=task_id
            ) from e

    def _task_post(self, task: Task) -> frontmatter.Post:
        post = frontmatter.Post(task.description)
        post.metadata = task.to_frontmatter()
        return post

    def _write(self, filepath: Path, post: frontmatter.Post) -> None:
        # sort_keys=False preserves column and field order
        try:
            with filepath.open("w", encoding="utf-8") as f:
                f.write(frontmatter.dumps(post, sort_keys=False))
        except OSError as e:
            raise BoardError(
                f"Couldn't write {filepath.name}: {e}", ErrorKind.ACCESS, path=str(filepath)
            ) from e
        logger.debug("Wrote %s", filepath)
