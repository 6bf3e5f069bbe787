"""Data storage configuration helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import optional_env_var

APP_DIR_NAME: Final[str] = "civicview"
SOURCE_DB_FILENAME: Final[str] = "operational.db"
TARGET_DB_FILENAME: Final[str] = "materialized.db"


def get_data_dir() -> Path:
    """Return the directory where civicview keeps its local databases."""

    env_dir = optional_env_var("CIVICVIEW_DATA_DIR")
    if env_dir:
        return Path(env_dir).expanduser().resolve()

    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")

    return (base_path / APP_DIR_NAME).expanduser().resolve()


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Connection strings for the operational (source) and materialized (target) stores."""

    data_dir: Path
    source_uri: str | None = None
    target_uri: str | None = None

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def ensure_data_dir(self) -> Path:
        data_dir = self.resolve_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def source_database_uri(self) -> str:
        if self.source_uri:
            return self.source_uri
        return f"sqlite+pysqlite:///{self.ensure_data_dir() / SOURCE_DB_FILENAME}"

    def target_database_uri(self) -> str:
        if self.target_uri:
            return self.target_uri
        return f"sqlite+pysqlite:///{self.ensure_data_dir() / TARGET_DB_FILENAME}"


def get_storage_config() -> StorageConfig:
    return StorageConfig(
        data_dir=get_data_dir(),
        source_uri=optional_env_var("SOURCE_DATABASE_URI"),
        target_uri=optional_env_var("TARGET_DATABASE_URI"),
    )
