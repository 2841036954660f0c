"""Duplicate-check configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .integrations import SettingsTable, read_bool, read_str, read_str_list, read_table


@dataclass(frozen=True, slots=True)
class DuplicatesConfig:
    """Raw ``[duplicates]`` settings.

    Default choices are kept as the configured strings; the domain layer turns
    them into resolution choices and rejects unknown values.
    """

    enabled: bool = True
    record_store_default: str = "update"
    task_board_default: str = "use_existing"
    document_store_default: str = "keep"
    allow_recreate: bool = False
    update_fields: tuple[str, ...] = ()
    merge_milestones: bool = False
    merge_assignments: bool = False
    update_milestones: bool = False


def get_duplicates_config(settings: SettingsTable | None = None) -> DuplicatesConfig:
    section = settings or {}
    defaults = read_table(section, "defaults")
    airtable = read_table(section, "airtable")
    asana = read_table(section, "asana")
    google = read_table(section, "google")
    return DuplicatesConfig(
        enabled=read_bool(section, "enabled", default=True),
        record_store_default=read_str(defaults, "airtable") or "update",
        task_board_default=read_str(defaults, "asana") or "use_existing",
        document_store_default=read_str(defaults, "google") or "keep",
        allow_recreate=read_bool(google, "allow_recreate", default=False),
        update_fields=read_str_list(airtable, "update_fields"),
        merge_milestones=read_bool(airtable, "merge_milestones", default=False),
        merge_assignments=read_bool(airtable, "merge_assignments", default=False),
        update_milestones=read_bool(asana, "update_milestones", default=False),
    )
