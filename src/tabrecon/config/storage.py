"""Database location settings.

``DATABASE_URI`` wins when set. Otherwise runs are kept in a SQLite file under
``TABRECON_DATA_DIR``, falling back to the platform's per-user data directory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import optional_env_var

DATA_DIR_ENV: Final[str] = "TABRECON_DATA_DIR"
DATABASE_URI_ENV: Final[str] = "DATABASE_URI"
APP_DIR_NAME: Final[str] = "tabrecon"
DEFAULT_DB_FILENAME: Final[str] = "tabrecon.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    @property
    def database_path(self) -> Path:
        return self.data_dir / self.database_filename

    def sqlite_uri(self) -> str:
        """SQLite URI for ``database_path``; creates ``data_dir`` if needed."""

        self.data_dir.mkdir(parents=True, exist_ok=True)
        return f"sqlite+pysqlite:///{self.database_path}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def _platform_data_home() -> Path:
    if os.name == "nt":
        env_name, fallback = "LOCALAPPDATA", Path.home() / "AppData" / "Local"
    else:
        env_name, fallback = "XDG_DATA_HOME", Path.home() / ".local" / "share"
    configured = optional_env_var(env_name)
    return Path(configured) if configured else fallback


def get_storage_config() -> StorageConfig:
    configured = optional_env_var(DATA_DIR_ENV)
    data_dir = Path(configured) if configured else _platform_data_home() / APP_DIR_NAME
    return StorageConfig(data_dir=data_dir.expanduser().resolve())


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    uri = optional_env_var(DATABASE_URI_ENV)
    if uri is None:
        uri = (storage or get_storage_config()).sqlite_uri()
    return DatabaseConfig(uri=uri)
