from __future__ import annotations

import json
import stat
from pathlib import Path  # noqa: TC003

import pytest

from kickoff.adapters.token_store import InMemoryTokenStore, JsonFileTokenStore
from kickoff.config.errors import ConfigurationError
from kickoff.config.storage import StorageConfig
from kickoff.domain.platforms import PlatformId
from tests.helpers.fakes import make_token


def test_in_memory_store_round_trip() -> None:
    store = InMemoryTokenStore()
    record = make_token()

    store.save(PlatformId.TASK_BOARD, record)

    assert store.load(PlatformId.TASK_BOARD) == record
    assert store.load(PlatformId.RECORD_STORE) is None
    store.delete(PlatformId.TASK_BOARD)
    store.delete(PlatformId.TASK_BOARD)
    assert store.load(PlatformId.TASK_BOARD) is None


def test_json_store_persists_records_across_instances(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "tokens.json"
    record = make_token(refresh_token=None)

    JsonFileTokenStore(path).save(PlatformId.DOCUMENT_STORE, record)

    assert JsonFileTokenStore(path).load(PlatformId.DOCUMENT_STORE) == record
    assert stat.S_IMODE(path.stat().st_mode) == 0o600
    data = json.loads(path.read_text(encoding="utf-8"))
    assert list(data["tokens"]) == ["document_store"]
    assert [item.name for item in path.parent.iterdir()] == ["tokens.json"]


def test_json_store_keeps_other_platforms(tmp_path: Path) -> None:
    store = JsonFileTokenStore(tmp_path / "tokens.json")
    store.save(PlatformId.RECORD_STORE, make_token("a"))
    store.save(PlatformId.TASK_BOARD, make_token("b"))

    store.delete(PlatformId.RECORD_STORE)

    assert store.load(PlatformId.RECORD_STORE) is None
    loaded = store.load(PlatformId.TASK_BOARD)
    assert loaded is not None
    assert loaded.access_token == "b"


def test_json_store_without_file_is_empty(tmp_path: Path) -> None:
    store = JsonFileTokenStore(tmp_path / "missing.json")

    assert store.load(PlatformId.TASK_BOARD) is None
    store.delete(PlatformId.TASK_BOARD)
    assert not store.path.exists()


def test_json_store_rejects_corrupt_file(tmp_path: Path) -> None:
    path = tmp_path / "tokens.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="corrupt"):
        JsonFileTokenStore(path).load(PlatformId.TASK_BOARD)


def test_from_storage_uses_data_dir(tmp_path: Path) -> None:
    store = JsonFileTokenStore.from_storage(StorageConfig(data_dir=tmp_path / "data"))

    assert store.path == (tmp_path / "data" / "tokens.json").resolve()
    assert store.path.parent.is_dir()
