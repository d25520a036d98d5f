"""Configuration service for the separate mdboard.yml options file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from ..errors import BoardError, ErrorKind

logger = logging.getLogger(__name__)


class ConfigService:
    """Loads and saves board options kept in mdboard.yml.

    When the file exists its keys override the options stored in the index,
    and saving the index writes the options here instead.
    """

    CONFIG_FILE = "mdboard.yml"

    def __init__(self, project_root: Path) -> None:
        """Initialize the config service.

        Args:
            project_root: Directory containing mdboard.yml
        """
        self.project_root = project_root
        self._config: dict[str, Any] | None = None
        self._loaded = False

    @property
    def config_path(self) -> Path:
        return self.project_root / self.CONFIG_FILE

    def config_exists(self) -> bool:
        return self.config_path.exists()

    def get_config(self) -> dict[str, Any] | None:
        """Get the options from mdboard.yml, or None if there is no file."""
        if not self._loaded:
            self._config = self._load_config()
            self._loaded = True
        return self._config

    def save_config(self, options: dict[str, Any]) -> None:
        """Overwrite mdboard.yml with the given options."""
        try:
            with self.config_path.open("w") as f:
                yaml.safe_dump(options, f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            raise BoardError(
                f"Couldn't write config file: {e}", ErrorKind.ACCESS, path=str(self.config_path)
            ) from e
        self._config = options
        self._loaded = True
        logger.debug("Saved options to %s", self.config_path)

    def reload(self) -> None:
        """Clear cached configuration, forcing reload on next access."""
        self._config = None
        self._loaded = False

    def _load_config(self) -> dict[str, Any] | None:
        if not self.config_exists():
            logger.debug("No %s found, options come from the index", self.CONFIG_FILE)
            return None

        try:
            with self.config_path.open() as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise BoardError(
                f"Couldn't load config file: {e}", ErrorKind.ACCESS, path=str(self.config_path)
            ) from e

        if data is None:
            logger.warning("%s is empty", self.CONFIG_FILE)
            return {}
        if not isinstance(data, dict):
            raise BoardError(
                f"Couldn't load config file: {self.CONFIG_FILE} must contain a mapping",
                ErrorKind.ACCESS,
                path=str(self.config_path),
            )

        logger.info("Loaded %s with %d option(s)", self.CONFIG_FILE, len(data))
        return data
