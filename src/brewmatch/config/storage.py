"""Where the catalog database lives."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import env_bool, env_str

APP_DIR_NAME: Final[str] = "brewmatch"
CATALOG_DB_FILENAME: Final[str] = "catalog.db"


def platform_data_home() -> Path:
    """Per-user data root: ``%LOCALAPPDATA%`` on Windows, ``$XDG_DATA_HOME`` elsewhere."""

    if os.name == "nt":
        root = env_str("LOCALAPPDATA")
        fallback = Path.home() / "AppData" / "Local"
    else:
        root = env_str("XDG_DATA_HOME")
        fallback = Path.home() / ".local" / "share"
    return Path(root) if root else fallback


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    catalog_filename: str = CATALOG_DB_FILENAME

    def catalog_path(self, *, ensure: bool = True) -> Path:
        directory = self.data_dir.expanduser().resolve()
        if ensure:
            directory.mkdir(parents=True, exist_ok=True)
        return directory / self.catalog_filename

    def database_uri(self, *, ensure: bool = True) -> str:
        return f"sqlite+pysqlite:///{self.catalog_path(ensure=ensure)}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    echo: bool = False


def get_storage_config() -> StorageConfig:
    override = env_str("BREWMATCH_DATA_DIR")
    data_dir = Path(override) if override else platform_data_home() / APP_DIR_NAME
    return StorageConfig(data_dir=data_dir)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise a SQLite file under the data directory."""

    echo = env_bool("BREWMATCH_DB_ECHO", False)
    uri = env_str("DATABASE_URI")
    if uri is None:
        uri = (storage or get_storage_config()).database_uri()
    return DatabaseConfig(uri=uri, echo=echo)
