"""Integration settings read from the ``integrations.toml`` file."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import TYPE_CHECKING, Final, cast

from .errors import ConfigurationError, InvalidSettingError, MissingConfigurationError

if TYPE_CHECKING:
    from _typeshed import DataclassInstance

CONFIG_PATH_ENV: Final[str] = "KICKOFF_CONFIG_PATH"

type SettingsTable = Mapping[str, object]


@dataclass(frozen=True, slots=True)
class IntegrationSettings:
    """Parsed top-level tables of the integrations file."""

    tables: SettingsTable = field(default_factory=dict)
    source: Path | None = None

    def section(self, name: str) -> SettingsTable:
        return read_table(self.tables, name)


def load_integration_settings(path: Path | None = None) -> IntegrationSettings:
    """Load integration settings from ``path`` or ``$KICKOFF_CONFIG_PATH``.

    Without either, an empty settings object is returned so that every platform
    falls back to its environment variables and built-in defaults.
    """

    if path is None:
        env_path = os.getenv(CONFIG_PATH_ENV)
        if not env_path:
            return IntegrationSettings()
        path = Path(env_path)

    resolved = path.expanduser()
    if not resolved.is_file():
        raise MissingConfigurationError(f"Integration settings file not found: {resolved}")

    try:
        with resolved.open("rb") as handle:
            data = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid TOML in {resolved}: {exc}") from exc

    return IntegrationSettings(tables=data, source=resolved)


def read_table(table: SettingsTable, key: str) -> SettingsTable:
    value = table.get(key, {})
    if not isinstance(value, Mapping):
        raise InvalidSettingError(key, "a table")
    return cast(SettingsTable, value)


def read_str(table: SettingsTable, key: str, default: str | None = None) -> str | None:
    value = table.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        raise InvalidSettingError(key, "a string")
    return value.strip() or default


def read_bool(table: SettingsTable, key: str, *, default: bool) -> bool:
    value = table.get(key, default)
    if not isinstance(value, bool):
        raise InvalidSettingError(key, "true or false")
    return value


def read_str_mapping(table: SettingsTable, key: str) -> dict[str, str]:
    result: dict[str, str] = {}
    for name, value in read_table(table, key).items():
        if not isinstance(value, str):
            raise InvalidSettingError(f"{key}.{name}", "a string")
        result[name] = value
    return result


def read_str_list(table: SettingsTable, key: str) -> tuple[str, ...]:
    value = table.get(key, ())
    if not isinstance(value, list | tuple):
        raise InvalidSettingError(key, "a list of strings")
    items = cast(list[object], list(value))
    if not all(isinstance(item, str) for item in items):
        raise InvalidSettingError(key, "a list of strings")
    return tuple(cast(list[str], items))


def apply_overrides[T: DataclassInstance](
    defaults: T,
    table: SettingsTable,
    key: str,
) -> T:
    """Return ``defaults`` with string fields replaced from ``table[key]``."""

    overrides = read_str_mapping(table, key)
    known = {item.name for item in fields(defaults)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ConfigurationError(f"Unknown keys in '{key}': {', '.join(unknown)}")
    return replace(defaults, **overrides)
