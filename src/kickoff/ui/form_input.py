"""JSON intake form accepted by the CLI."""

from __future__ import annotations

from datetime import date  # noqa: TC003
from typing import TYPE_CHECKING

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from kickoff.domain.form import ExistingUrls, Milestone, ProjectForm, RoleAssignment

if TYPE_CHECKING:
    from pathlib import Path


class FormBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RoleInput(FormBaseModel):
    role: str
    member_id: str = Field(validation_alias=AliasChoices("member_id", "memberId"))
    member_name: str = Field(validation_alias=AliasChoices("member_name", "memberName", "name"))
    fte: float | None = None

    def to_domain(self) -> RoleAssignment:
        return RoleAssignment(
            role=self.role,
            member_id=self.member_id,
            member_name=self.member_name,
            fte=self.fte,
        )


class MilestoneInput(FormBaseModel):
    name: str = ""
    description: str = ""
    due_date: date | None = Field(
        default=None, validation_alias=AliasChoices("due_date", "dueDate")
    )
    assignee_id: str | None = Field(
        default=None, validation_alias=AliasChoices("assignee_id", "assigneeId")
    )

    def to_domain(self) -> Milestone:
        return Milestone(
            name=self.name,
            description=self.description,
            due_date=self.due_date,
            assignee_id=self.assignee_id,
        )


class ExistingUrlsInput(FormBaseModel):
    record_store: str | None = Field(
        default=None, validation_alias=AliasChoices("record_store", "airtable")
    )
    task_board: str | None = Field(
        default=None, validation_alias=AliasChoices("task_board", "asana")
    )
    document_store: str | None = Field(
        default=None, validation_alias=AliasChoices("document_store", "google")
    )

    def to_domain(self) -> ExistingUrls:
        return ExistingUrls.parse(
            record_store=self.record_store,
            task_board=self.task_board,
            document_store=self.document_store,
        )


class ProjectFormInput(FormBaseModel):
    name: str = Field(validation_alias=AliasChoices("name", "project_name", "projectName"))
    acronym: str = ""
    description: str = ""
    objectives: str = ""
    start_date: date | None = Field(
        default=None, validation_alias=AliasChoices("start_date", "startDate")
    )
    end_date: date | None = Field(
        default=None, validation_alias=AliasChoices("end_date", "endDate")
    )
    funder_id: str | None = Field(
        default=None, validation_alias=AliasChoices("funder_id", "funder")
    )
    parent_initiative_id: str | None = Field(
        default=None, validation_alias=AliasChoices("parent_initiative_id", "parentInitiative")
    )
    project_type: str | None = Field(
        default=None, validation_alias=AliasChoices("project_type", "projectType")
    )
    roles: list[RoleInput] = Field(default_factory=list)
    milestones: list[MilestoneInput] = Field(default_factory=list)
    existing_urls: ExistingUrlsInput = Field(
        default_factory=ExistingUrlsInput,
        validation_alias=AliasChoices("existing_urls", "existingUrls"),
    )
    submission_id: str | None = Field(
        default=None, validation_alias=AliasChoices("submission_id", "submissionId")
    )

    def to_domain(self) -> ProjectForm:
        """Build the domain form; raises ``InputValidationError`` for bad links or dates."""

        return ProjectForm(
            name=self.name,
            acronym=self.acronym,
            description=self.description,
            objectives=self.objectives,
            start_date=self.start_date,
            end_date=self.end_date,
            funder_id=self.funder_id or None,
            parent_initiative_id=self.parent_initiative_id or None,
            project_type=self.project_type or None,
            roles=tuple(role.to_domain() for role in self.roles),
            milestones=tuple(milestone.to_domain() for milestone in self.milestones),
            existing_urls=self.existing_urls.to_domain(),
            submission_id=self.submission_id,
        )


def load_form(path: Path) -> ProjectForm:
    """Read a JSON form file; every problem surfaces as a ``ValueError``."""

    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise ValueError(f"Cannot read form file {path}: {exc}") from exc
    return ProjectFormInput.model_validate_json(raw).to_domain()
