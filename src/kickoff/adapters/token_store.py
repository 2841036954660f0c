"""Token record persistence."""

from __future__ import annotations

import os
import tempfile
from datetime import datetime
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from kickoff.config.errors import ConfigurationError
from kickoff.domain.platforms import PlatformId
from kickoff.domain.tokens import TokenRecord

if TYPE_CHECKING:
    from kickoff.config.storage import StorageConfig

log = getLogger(__name__)


class InMemoryTokenStore:
    """Keeps token records for the lifetime of the process."""

    def __init__(self, records: dict[PlatformId, TokenRecord] | None = None) -> None:
        self._records: dict[PlatformId, TokenRecord] = dict(records or {})

    def load(self, platform: PlatformId) -> TokenRecord | None:
        return self._records.get(platform)

    def save(self, platform: PlatformId, record: TokenRecord) -> None:
        self._records[platform] = record

    def delete(self, platform: PlatformId) -> None:
        self._records.pop(platform, None)


class _StoredToken(BaseModel):
    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: str | None = None
    expires_at: datetime
    obtained_at: datetime

    @classmethod
    def from_record(cls, record: TokenRecord) -> _StoredToken:
        return cls(
            access_token=record.access_token,
            refresh_token=record.refresh_token,
            expires_at=record.expires_at,
            obtained_at=record.obtained_at,
        )

    def to_record(self) -> TokenRecord:
        return TokenRecord(
            access_token=self.access_token,
            refresh_token=self.refresh_token,
            expires_at=self.expires_at,
            obtained_at=self.obtained_at,
        )


class _TokenFile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    tokens: dict[PlatformId, _StoredToken] = Field(default_factory=dict)


class JsonFileTokenStore:
    """Stores token records in a JSON file readable only by the current user.

    Every write replaces the file atomically, so a crash never leaves a
    half-written credential file behind.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @classmethod
    def from_storage(cls, storage: StorageConfig) -> JsonFileTokenStore:
        return cls(storage.tokens_path())

    @property
    def path(self) -> Path:
        return self._path

    def load(self, platform: PlatformId) -> TokenRecord | None:
        stored = self._read().tokens.get(platform)
        return stored.to_record() if stored else None

    def save(self, platform: PlatformId, record: TokenRecord) -> None:
        data = self._read()
        data.tokens[platform] = _StoredToken.from_record(record)
        self._write(data)

    def delete(self, platform: PlatformId) -> None:
        data = self._read()
        if data.tokens.pop(platform, None) is not None:
            self._write(data)

    def _read(self) -> _TokenFile:
        if not self._path.exists():
            return _TokenFile()
        try:
            return _TokenFile.model_validate_json(self._path.read_bytes())
        except ValidationError as exc:
            msg = f"Token file {self._path} is corrupt; remove it and reconnect"
            raise ConfigurationError(msg) from exc

    def _write(self, data: _TokenFile) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path: Path | None = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                prefix=f".{self._path.name}-",
                suffix=".tmp",
                dir=self._path.parent,
                delete=False,
            ) as handle:
                tmp_path = Path(handle.name)
                handle.write(data.model_dump_json(indent=2))
            tmp_path.chmod(0o600)
            os.replace(tmp_path, self._path)
            tmp_path = None
            log.debug("Wrote %d token record(s) to %s", len(data.tokens), self._path)
        finally:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
