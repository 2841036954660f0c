"""Location of kickoff's local state."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Final

DATA_DIR_ENV: Final[str] = "KICKOFF_DATA_DIR"
APP_DIR_NAME: Final[str] = "kickoff"
TOKENS_FILENAME: Final[str] = "tokens.json"
HTTP_CACHE_FILENAME: Final[str] = "http-cache.sqlite"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path

    def tokens_path(self, *, ensure: bool = True) -> Path:
        """Path of the token file; with ``ensure`` the directory is created private."""

        return self._private_dir(ensure=ensure) / TOKENS_FILENAME

    def http_cache_path(self, *, ensure: bool = True) -> Path:
        return self._private_dir(ensure=ensure) / HTTP_CACHE_FILENAME

    def _private_dir(self, *, ensure: bool) -> Path:
        data_dir = self.data_dir.expanduser().resolve()
        if ensure and not data_dir.exists():
            data_dir.mkdir(mode=0o700, parents=True)
        return data_dir


def user_data_dir() -> Path:
    if sys.platform == "win32":
        base = os.getenv("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(base).expanduser() / APP_DIR_NAME


def get_storage_config() -> StorageConfig:
    env_dir = os.getenv(DATA_DIR_ENV)
    return StorageConfig(data_dir=Path(env_dir) if env_dir else user_data_dir())
