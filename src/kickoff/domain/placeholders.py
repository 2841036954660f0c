"""Template placeholder values for copied documents and decks."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from .form import PROJECT_COORDINATOR_ROLE, PROJECT_OWNER_ROLE

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import date

    from .form import ProjectForm

DEFAULT_PLACEHOLDER_TOKENS: Final[Mapping[str, str]] = {
    "project_name": "{{PROJECT_NAME}}",
    "project_acronym": "{{PROJECT_ACRONYM}}",
    "project_description": "{{PROJECT_DESCRIPTION}}",
    "objectives": "{{OBJECTIVES}}",
    "start_date": "{{START_DATE}}",
    "end_date": "{{END_DATE}}",
    "created_date": "{{CREATED_DATE}}",
    "project_owner": "{{PROJECT_OWNER}}",
    "project_coordinator": "{{PROJECT_COORDINATOR}}",
}


def format_long_date(value: date | None) -> str:
    """Render ``2024-03-05`` as ``March 5, 2024``; missing dates read ``TBD``."""

    if value is None:
        return "TBD"
    return f"{value:%B} {value.day}, {value.year}"


def build_replacements(
    form: ProjectForm,
    *,
    today: date,
    tokens: Mapping[str, str] = DEFAULT_PLACEHOLDER_TOKENS,
) -> dict[str, str]:
    owner = form.member_for_role(PROJECT_OWNER_ROLE)
    coordinator = form.member_for_role(PROJECT_COORDINATOR_ROLE)
    values = {
        "project_name": form.project_name,
        "project_acronym": form.acronym,
        "project_description": form.description,
        "objectives": form.objectives,
        "start_date": format_long_date(form.start_date),
        "end_date": format_long_date(form.end_date),
        "created_date": format_long_date(today),
        "project_owner": owner.member_name if owner else "",
        "project_coordinator": coordinator.member_name if coordinator else "",
    }
    return {
        tokens.get(key, DEFAULT_PLACEHOLDER_TOKENS[key]): value for key, value in values.items()
    }
