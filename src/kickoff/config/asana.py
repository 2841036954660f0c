"""Asana (task board) configuration values."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from .env import optional_env_var, require_env_vars
from .errors import MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, ShouldCacheHook
from .integrations import SettingsTable, read_str, read_str_mapping

ASANA_API_URL = "https://app.asana.com/api/1.0/"
ASANA_TIMEOUT_SECONDS = 20.0


@dataclass(frozen=True)
class AsanaConfig:
    """Holds Asana workspace, team and template configuration."""

    workspace_gid: str
    team_gid: str
    default_template_gid: str
    resilience: ResilienceConfig
    templates: Mapping[str, str] = field(default_factory=dict)

    def template_for(self, project_type: str | None) -> str:
        """Return the template for ``project_type``, falling back to the default."""

        if project_type and project_type in self.templates:
            return self.templates[project_type]
        return self.default_template_gid


def default_asana_resilience(cache_predicate: ShouldCacheHook | None = None) -> ResilienceConfig:
    return ResilienceConfig(
        name="asana",
        base_url=ASANA_API_URL,
        timeout_seconds=ASANA_TIMEOUT_SECONDS,
        ratelimit=RateLimit(max_calls=150, per_seconds=60.0),
        cache=CacheConfig(should_cache=cache_predicate) if cache_predicate else None,
    )


def get_asana_config(
    settings: SettingsTable | None = None,
    *,
    resilience: ResilienceConfig | None = None,
    cache_predicate: ShouldCacheHook | None = None,
) -> AsanaConfig:
    section = settings or {}
    values = require_env_vars(("ASANA_TEAM_GID",))
    workspace_gid = read_str(section, "workspace_gid") or optional_env_var("ASANA_WORKSPACE_GID")
    default_template = read_str(section, "default_template_gid") or optional_env_var(
        "ASANA_TEMPLATE_GID"
    )
    missing = [
        name
        for name, value in (
            ("ASANA_WORKSPACE_GID", workspace_gid),
            ("ASANA_TEMPLATE_GID", default_template),
        )
        if value is None
    ]
    if missing or workspace_gid is None or default_template is None:
        raise MissingConfigurationError(f"Missing configuration for: {', '.join(missing)}")

    return AsanaConfig(
        workspace_gid=workspace_gid,
        team_gid=values["ASANA_TEAM_GID"],
        default_template_gid=default_template,
        resilience=resilience or default_asana_resilience(cache_predicate),
        templates=read_str_mapping(section, "templates"),
    )
