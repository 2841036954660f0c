"""Airtable (record store) configuration values."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from .env import require_env_vars
from .http_resilience import RateLimit, ResilienceConfig
from .integrations import SettingsTable, apply_overrides, read_str, read_str_mapping, read_table

AIRTABLE_API_URL = "https://api.airtable.com/v0/"
AIRTABLE_APP_URL = "https://airtable.com"
AIRTABLE_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True, slots=True)
class ProjectFieldNames:
    name: str = "Project"
    acronym: str = "Project Acronym"
    description: str = "Project Description"
    objectives: str = "Objectives"
    start_date: str = "Start Date"
    end_date: str = "End Date"
    status: str = "Status"
    funder: str = "Funder"
    parent_initiative: str = "Parent Initiative"
    project_type: str = "Project Type"
    task_board_url: str = "Asana Board"
    scoping_doc_url: str = "Project Scope"
    folder_url: str = "Project Folder"


@dataclass(frozen=True, slots=True)
class MilestoneFieldNames:
    name: str = "Milestone"
    description: str = "Description"
    due_date: str = "Due Date"
    project_link: str = "Project"


@dataclass(frozen=True, slots=True)
class AssignmentFieldNames:
    role: str = "Role"
    team_member_link: str = "Data Team Member"
    project_link: str = "Project"
    fte: str = "FTE"


@dataclass(frozen=True)
class AirtableConfig:
    """Holds Airtable base, table and field configuration."""

    base_id: str
    resilience: ResilienceConfig
    projects_table: str = "Projects"
    milestones_table: str = "Milestones"
    assignments_table: str = "Assignments"
    projects_table_id: str | None = None
    projects_view_id: str | None = None
    default_status: str = "In Ideation"
    search_limit: int = 5
    project_fields: ProjectFieldNames = field(default_factory=ProjectFieldNames)
    milestone_fields: MilestoneFieldNames = field(default_factory=MilestoneFieldNames)
    assignment_fields: AssignmentFieldNames = field(default_factory=AssignmentFieldNames)
    role_values: Mapping[str, str] = field(default_factory=dict)

    def role_value(self, role_key: str) -> str:
        """Map a form role key onto the value of the Airtable ``Role`` field."""

        return self.role_values.get(role_key, "Other")


def default_airtable_resilience() -> ResilienceConfig:
    return ResilienceConfig(
        name="airtable",
        base_url=AIRTABLE_API_URL,
        timeout_seconds=AIRTABLE_TIMEOUT_SECONDS,
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
    )


def get_airtable_config(
    settings: SettingsTable | None = None,
    *,
    resilience: ResilienceConfig | None = None,
) -> AirtableConfig:
    values = require_env_vars(("AIRTABLE_BASE_ID",))
    section = settings or {}
    tables = read_table(section, "tables")
    table_ids = read_table(section, "table_ids")
    view_ids = read_table(section, "view_ids")
    defaults = read_table(section, "project_defaults")
    return AirtableConfig(
        base_id=values["AIRTABLE_BASE_ID"],
        resilience=resilience or default_airtable_resilience(),
        projects_table=read_str(tables, "projects") or "Projects",
        milestones_table=read_str(tables, "milestones") or "Milestones",
        assignments_table=read_str(tables, "assignments") or "Assignments",
        projects_table_id=read_str(table_ids, "projects"),
        projects_view_id=read_str(view_ids, "projects"),
        default_status=read_str(defaults, "status") or "In Ideation",
        project_fields=apply_overrides(ProjectFieldNames(), section, "project_fields"),
        milestone_fields=apply_overrides(MilestoneFieldNames(), section, "milestone_fields"),
        assignment_fields=apply_overrides(AssignmentFieldNames(), section, "assignment_fields"),
        role_values=read_str_mapping(section, "role_values"),
    )
