"""Pydantic models describing the Asana API payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class AsanaBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class NamedResource(AsanaBaseModel):
    gid: str
    name: str = ""


class TypeaheadProject(NamedResource):
    permalink_url: str | None = None


class TypeaheadResponse(AsanaBaseModel):
    data: list[TypeaheadProject] = Field(default_factory=list)


class ProjectTemplate(NamedResource):
    requested_dates: list[NamedResource] = Field(default_factory=list)
    requested_roles: list[NamedResource] = Field(default_factory=list)


class TemplateResponse(AsanaBaseModel):
    data: ProjectTemplate


class WorkspaceUser(NamedResource):
    email: str | None = None


class NextPage(AsanaBaseModel):
    offset: str


class UsersResponse(AsanaBaseModel):
    data: list[WorkspaceUser] = Field(default_factory=list)
    next_page: NextPage | None = None


class InstantiateJob(AsanaBaseModel):
    gid: str | None = None
    status: str | None = None
    new_project: NamedResource | None = None


class InstantiateResponse(AsanaBaseModel):
    data: InstantiateJob


class TaskResponse(AsanaBaseModel):
    data: NamedResource


class ErrorItem(AsanaBaseModel):
    message: str = ""
    help: str | None = None


class ErrorResponse(AsanaBaseModel):
    errors: list[ErrorItem] = Field(default_factory=list)


def describe_error(payload: object) -> str | None:
    if not isinstance(payload, dict) or "errors" not in payload:
        return None
    errors = ErrorResponse.model_validate(payload).errors
    messages = [item.message for item in errors if item.message]
    return "; ".join(messages) or None


def is_template_payload(payload: object) -> bool:
    """Only project template reads are worth caching."""

    if not isinstance(payload, dict):
        return False
    data = payload.get("data")
    return isinstance(data, dict) and "requested_roles" in data
