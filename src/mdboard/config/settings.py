"""Application settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    project_root: Path = Field(
        default=Path(),
        description="Path to project root containing the board folder and mdboard.yml",
    )

    folder_name: str = Field(
        default=".mdboard",
        description="Name of the board folder inside the project root",
    )

    verbose: int = Field(
        default=0,
        description="Verbosity level (0=off, 1=INFO, 2+=DEBUG)",
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional path to write logs to file",
    )

    model_config = {
        "env_prefix": "MDBOARD_",
    }

    @property
    def board_root(self) -> Path:
        return self.project_root / self.folder_name
