"""The project intake form as submitted by the operator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from .errors import InputValidationError
from .matching import normalize_name
from .platforms import PlatformId
from .urls import LinkedResource, parse_existing_url

if TYPE_CHECKING:
    from datetime import date

PROJECT_OWNER_ROLE: Final[str] = "project_owner"
PROJECT_COORDINATOR_ROLE: Final[str] = "project_coordinator"


@dataclass(frozen=True, slots=True, kw_only=True)
class RoleAssignment:
    """A team member staffed on the project in a given role."""

    role: str
    member_id: str
    member_name: str
    fte: float | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class Milestone:
    name: str
    description: str = ""
    due_date: date | None = None
    assignee_id: str | None = None


@dataclass(frozen=True, slots=True)
class ExistingUrls:
    """Validated links to resources the operator says already exist."""

    record_store: LinkedResource | None = None
    task_board: LinkedResource | None = None
    document_store: LinkedResource | None = None

    def for_platform(self, platform: PlatformId) -> LinkedResource | None:
        match platform:
            case PlatformId.RECORD_STORE:
                return self.record_store
            case PlatformId.TASK_BOARD:
                return self.task_board
            case PlatformId.DOCUMENT_STORE:
                return self.document_store

    @classmethod
    def parse(
        cls,
        *,
        record_store: str | None = None,
        task_board: str | None = None,
        document_store: str | None = None,
    ) -> ExistingUrls:
        """Validate raw URLs; blank values mean "no link"."""

        def _parse(platform: PlatformId, value: str | None) -> LinkedResource | None:
            if value is None or not value.strip():
                return None
            return parse_existing_url(platform, value)

        return cls(
            record_store=_parse(PlatformId.RECORD_STORE, record_store),
            task_board=_parse(PlatformId.TASK_BOARD, task_board),
            document_store=_parse(PlatformId.DOCUMENT_STORE, document_store),
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class ProjectForm:
    name: str
    acronym: str = ""
    description: str = ""
    objectives: str = ""
    start_date: date | None = None
    end_date: date | None = None
    funder_id: str | None = None
    parent_initiative_id: str | None = None
    project_type: str | None = None
    roles: tuple[RoleAssignment, ...] = ()
    milestones: tuple[Milestone, ...] = ()
    existing_urls: ExistingUrls = field(default_factory=ExistingUrls)
    submission_id: str | None = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise InputValidationError("project name", self.name, "must not be blank")
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise InputValidationError(
                "end date", self.end_date.isoformat(), "must not be before the start date"
            )

    @property
    def project_name(self) -> str:
        return self.name.strip()

    @property
    def submission_key(self) -> str:
        """Identity of one submission, used to refuse overlapping runs."""

        return self.submission_id or normalize_name(self.name)

    @property
    def named_milestones(self) -> tuple[Milestone, ...]:
        return tuple(milestone for milestone in self.milestones if milestone.name.strip())

    def member_for_role(self, role: str) -> RoleAssignment | None:
        return next((item for item in self.roles if item.role == role), None)

    def member_name(self, member_id: str) -> str | None:
        return next(
            (item.member_name for item in self.roles if item.member_id == member_id),
            None,
        )

    def milestone_assignee_name(self, milestone: Milestone) -> str | None:
        """Name of the milestone's assignee, defaulting to the project coordinator."""

        if milestone.assignee_id:
            name = self.member_name(milestone.assignee_id)
            if name:
                return name
        coordinator = self.member_for_role(PROJECT_COORDINATOR_ROLE)
        return coordinator.member_name if coordinator else None
