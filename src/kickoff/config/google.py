"""Google Drive (document store) configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import optional_env_var
from .http_resilience import RateLimit, ResilienceConfig
from .integrations import SettingsTable, apply_overrides, read_str

GOOGLE_DRIVE_API_URL = "https://www.googleapis.com/drive/v3/"
GOOGLE_DOCS_API_URL = "https://docs.googleapis.com/v1/"
GOOGLE_SLIDES_API_URL = "https://slides.googleapis.com/v1/"
GOOGLE_TIMEOUT_SECONDS = 20.0


@dataclass(frozen=True, slots=True)
class PlaceholderTokens:
    """Template tokens replaced in copied documents and decks."""

    project_name: str = "{{PROJECT_NAME}}"
    project_acronym: str = "{{PROJECT_ACRONYM}}"
    project_description: str = "{{PROJECT_DESCRIPTION}}"
    objectives: str = "{{OBJECTIVES}}"
    start_date: str = "{{START_DATE}}"
    end_date: str = "{{END_DATE}}"
    created_date: str = "{{CREATED_DATE}}"
    project_owner: str = "{{PROJECT_OWNER}}"
    project_coordinator: str = "{{PROJECT_COORDINATOR}}"


@dataclass(frozen=True)
class GoogleConfig:
    """Holds Drive locations and template ids."""

    resilience: ResilienceConfig
    shared_drive_id: str | None = None
    projects_folder_id: str | None = None
    scoping_doc_template_id: str | None = None
    kickoff_deck_template_id: str | None = None
    placeholders: PlaceholderTokens = field(default_factory=PlaceholderTokens)


def default_google_resilience() -> ResilienceConfig:
    return ResilienceConfig(
        name="google",
        timeout_seconds=GOOGLE_TIMEOUT_SECONDS,
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
    )


def get_google_config(
    settings: SettingsTable | None = None,
    *,
    resilience: ResilienceConfig | None = None,
) -> GoogleConfig:
    section = settings or {}
    return GoogleConfig(
        resilience=resilience or default_google_resilience(),
        shared_drive_id=read_str(section, "shared_drive_id")
        or optional_env_var("GOOGLE_SHARED_DRIVE_ID"),
        projects_folder_id=read_str(section, "projects_folder_id")
        or optional_env_var("GOOGLE_PARENT_FOLDER_ID"),
        scoping_doc_template_id=read_str(section, "scoping_doc_template_id")
        or optional_env_var("GOOGLE_SCOPING_TEMPLATE_ID"),
        kickoff_deck_template_id=read_str(section, "kickoff_deck_template_id")
        or optional_env_var("GOOGLE_KICKOFF_DECK_TEMPLATE_ID"),
        placeholders=apply_overrides(PlaceholderTokens(), section, "placeholders"),
    )
