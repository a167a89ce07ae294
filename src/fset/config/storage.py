"""Where fset keeps its data and which database it talks to."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "fset"
DEFAULT_DB_FILENAME: Final[str] = "fset.db"

DATA_DIR_ENV: Final[str] = "FSET_DATA_DIR"
DATABASE_URI_ENV: Final[str] = "DATABASE_URI"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Local data directory holding the default SQLite database."""

    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def database_path(self, *, ensure: bool = True) -> Path:
        data_dir = self.resolve_data_dir()
        if ensure:
            data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir / self.database_filename

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str

    @classmethod
    def from_storage(cls, storage: StorageConfig) -> DatabaseConfig:
        return cls(uri=storage.database_uri())


def _platform_data_home() -> Path:
    if os.name == "nt":
        local = os.getenv("LOCALAPPDATA")
        return Path(local) if local else Path.home() / "AppData" / "Local"
    xdg = os.getenv("XDG_DATA_HOME")
    return Path(xdg) if xdg else Path.home() / ".local" / "share"


def get_storage_config() -> StorageConfig:
    override = os.getenv(DATA_DIR_ENV)
    data_dir = Path(override) if override else _platform_data_home() / APP_DIR_NAME
    return StorageConfig(data_dir=data_dir)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` when set, otherwise SQLite inside the data directory."""

    uri = os.getenv(DATABASE_URI_ENV)
    if uri:
        return DatabaseConfig(uri=uri)
    return DatabaseConfig.from_storage(storage or get_storage_config())
