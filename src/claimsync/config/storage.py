"""Where claimsync keeps its database and HTTP cache."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import optional_env_var

APP_DIR_NAME: Final[str] = "claimsync"
DATABASE_FILENAME: Final[str] = "claimsync.db"
HTTP_CACHE_FILENAME: Final[str] = "http_cache.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Local data directory plus an optional external database URI.

    ``database_uri`` (from ``DATABASE_URI``) wins over the SQLite file in
    ``data_dir`` when set.
    """

    data_dir: Path
    database_uri: str | None = None

    @property
    def database_path(self) -> Path:
        return self.data_dir / DATABASE_FILENAME

    @property
    def http_cache_path(self) -> Path:
        return self.data_dir / HTTP_CACHE_FILENAME

    def ensure_data_dir(self) -> Path:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        return self.data_dir

    def resolved_database_uri(self) -> str:
        if self.database_uri is not None:
            return self.database_uri
        self.ensure_data_dir()
        return f"sqlite+pysqlite:///{self.database_path}"


def default_data_dir() -> Path:
    if os.name == "nt":
        local = optional_env_var("LOCALAPPDATA")
        base = Path(local) if local else Path.home() / "AppData" / "Local"
    else:
        xdg = optional_env_var("XDG_DATA_HOME")
        base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base / APP_DIR_NAME


def get_storage_config() -> StorageConfig:
    configured = optional_env_var("CLAIMSYNC_DATA_DIR")
    data_dir = Path(configured) if configured else default_data_dir()
    return StorageConfig(
        data_dir=data_dir.expanduser().resolve(),
        database_uri=optional_env_var("DATABASE_URI"),
    )


def get_database_uri() -> str:
    return get_storage_config().resolved_database_uri()


def get_http_cache_path() -> Path:
    storage = get_storage_config()
    storage.ensure_data_dir()
    return storage.http_cache_path
