from __future__ import annotations

import sys
from pathlib import Path  # noqa: TC003

import pytest

from kickoff.config import (
    ConfigurationError,
    InvalidSettingError,
    MissingConfigurationError,
    get_airtable_config,
    get_asana_config,
    get_duplicates_config,
    get_google_config,
    get_oauth_relay_config,
    get_storage_config,
    load_integration_settings,
    optional_env_var,
    require_env_vars,
)

INTEGRATIONS_TOML = """
[duplicates]
enabled = true

[duplicates.defaults]
airtable = "create_new"
asana = "skip"

[duplicates.airtable]
update_fields = ["description", "objectives"]
merge_milestones = true

[duplicates.google]
allow_recreate = true

[airtable.tables]
projects = "Portfolio"

[airtable.table_ids]
projects = "tblPortfolio"

[airtable.project_fields]
name = "Project Name"

[airtable.role_values]
project_owner = "Owner"

[asana]
workspace_gid = "ws-from-file"

[asana.templates]
Research = "tmpl-research"

[google]
projects_folder_id = "fld-projects"

[google.placeholders]
project_name = "<<NAME>>"
"""


def _write_settings(tmp_path: Path, text: str = INTEGRATIONS_TOML) -> Path:
    path = tmp_path / "integrations.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_require_env_vars_returns_stripped_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "  value ")

    assert require_env_vars(["EXAMPLE_VAR"]) == {"EXAMPLE_VAR": "value"}


def test_require_env_vars_lists_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_B", raising=False)
    monkeypatch.setenv("MISSING_A", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert str(exc.value) == "Missing configuration for: MISSING_A, MISSING_B"


def test_optional_env_var_treats_blank_as_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BLANK_VAR", " ")

    assert optional_env_var("BLANK_VAR") is None


def test_missing_settings_path_yields_empty_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("KICKOFF_CONFIG_PATH", raising=False)

    settings = load_integration_settings()

    assert settings.source is None
    assert settings.section("airtable") == {}


def test_settings_file_from_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    path = _write_settings(tmp_path)
    monkeypatch.setenv("KICKOFF_CONFIG_PATH", str(path))

    settings = load_integration_settings()

    assert settings.source == path
    assert settings.section("asana")["workspace_gid"] == "ws-from-file"


def test_settings_file_errors(tmp_path: Path) -> None:
    with pytest.raises(MissingConfigurationError):
        load_integration_settings(tmp_path / "absent.toml")
    with pytest.raises(ConfigurationError, match="Invalid TOML"):
        load_integration_settings(_write_settings(tmp_path, "[airtable\n"))


def test_duplicates_config_from_settings(tmp_path: Path) -> None:
    settings = load_integration_settings(_write_settings(tmp_path))

    config = get_duplicates_config(settings.section("duplicates"))

    assert config.enabled
    assert config.record_store_default == "create_new"
    assert config.task_board_default == "skip"
    assert config.document_store_default == "keep"
    assert config.allow_recreate
    assert config.update_fields == ("description", "objectives")
    assert config.merge_milestones
    assert not config.merge_assignments


def test_duplicates_config_rejects_wrong_types() -> None:
    with pytest.raises(InvalidSettingError) as exc:
        get_duplicates_config({"enabled": "yes"})
    assert exc.value.key == "enabled"
    assert str(exc.value) == "Setting 'enabled' must be true or false"

    with pytest.raises(InvalidSettingError, match="update_fields"):
        get_duplicates_config({"airtable": {"update_fields": "description"}})


def test_airtable_config_applies_overrides(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("AIRTABLE_BASE_ID", "appBase")
    settings = load_integration_settings(_write_settings(tmp_path))

    config = get_airtable_config(settings.section("airtable"))

    assert config.base_id == "appBase"
    assert config.projects_table == "Portfolio"
    assert config.projects_table_id == "tblPortfolio"
    assert config.project_fields.name == "Project Name"
    assert config.project_fields.status == "Status"
    assert config.role_value("project_owner") == "Owner"
    assert config.role_value("analyst") == "Other"


def test_airtable_config_rejects_unknown_field_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AIRTABLE_BASE_ID", "appBase")

    with pytest.raises(ConfigurationError, match="Unknown keys"):
        get_airtable_config({"project_fields": {"colour": "Colour"}})


def test_airtable_config_requires_base_id(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("AIRTABLE_BASE_ID", raising=False)

    with pytest.raises(MissingConfigurationError, match="AIRTABLE_BASE_ID"):
        get_airtable_config()


def test_asana_config_mixes_file_and_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("ASANA_TEAM_GID", "team1")
    monkeypatch.setenv("ASANA_WORKSPACE_GID", "ws-from-env")
    monkeypatch.setenv("ASANA_TEMPLATE_GID", "tmpl-default")
    settings = load_integration_settings(_write_settings(tmp_path))

    config = get_asana_config(settings.section("asana"))

    assert config.workspace_gid == "ws-from-file"
    assert config.team_gid == "team1"
    assert config.template_for("Research") == "tmpl-research"
    assert config.template_for("Evaluation") == "tmpl-default"
    assert config.template_for(None) == "tmpl-default"
    assert config.resilience.cache is None


def test_asana_config_reports_missing_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ASANA_TEAM_GID", "team1")
    monkeypatch.delenv("ASANA_WORKSPACE_GID", raising=False)
    monkeypatch.delenv("ASANA_TEMPLATE_GID", raising=False)

    with pytest.raises(MissingConfigurationError) as exc:
        get_asana_config()

    assert "ASANA_WORKSPACE_GID" in str(exc.value)
    assert "ASANA_TEMPLATE_GID" in str(exc.value)


def test_asana_cache_predicate_enables_memory_cache(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ASANA_TEAM_GID", "team1")

    config = get_asana_config(
        {"workspace_gid": "ws", "default_template_gid": "tmpl"},
        cache_predicate=lambda _: True,
    )

    assert config.resilience.cache is not None
    assert config.resilience.cache.should_cache is not None


def test_google_config_defaults_and_placeholders(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("GOOGLE_SHARED_DRIVE_ID", "drive1")
    monkeypatch.delenv("GOOGLE_SCOPING_TEMPLATE_ID", raising=False)
    settings = load_integration_settings(_write_settings(tmp_path))

    config = get_google_config(settings.section("google"))

    assert config.shared_drive_id == "drive1"
    assert config.projects_folder_id == "fld-projects"
    assert config.scoping_doc_template_id is None
    assert config.placeholders.project_name == "<<NAME>>"
    assert config.placeholders.start_date == "{{START_DATE}}"


def test_oauth_relay_config_points_at_functions(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OAUTH_RELAY_URL", "https://relay.example.org/")

    config = get_oauth_relay_config()

    assert config.base_url == "https://relay.example.org"
    assert config.resilience.base_url == "https://relay.example.org/.netlify/functions/"


def test_storage_config_honours_data_dir(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("KICKOFF_DATA_DIR", str(tmp_path / "state"))

    storage = get_storage_config()

    assert storage.tokens_path() == (tmp_path / "state" / "tokens.json").resolve()
    assert storage.http_cache_path() == (tmp_path / "state" / "http-cache.sqlite").resolve()
    assert (tmp_path / "state").is_dir()


@pytest.mark.skipif(sys.platform == "win32", reason="XDG layout")
def test_storage_config_defaults_to_xdg_data_home(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("KICKOFF_DATA_DIR", raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))

    storage = get_storage_config()

    assert storage.tokens_path(ensure=False) == (tmp_path / "kickoff" / "tokens.json").resolve()
