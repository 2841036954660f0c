"""Port for the record store (the system of record for projects)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from kickoff.domain.form import Milestone, ProjectForm, RoleAssignment


@dataclass(frozen=True, slots=True, kw_only=True)
class RecordSummary:
    record_id: str
    name: str
    url: str
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class RecordRef:
    record_id: str
    url: str


@dataclass(frozen=True, slots=True, kw_only=True)
class ResourceLinks:
    """Links to sibling resources stored on the project record."""

    task_board_url: str | None = None
    scoping_doc_url: str | None = None
    folder_url: str | None = None

    def is_empty(self) -> bool:
        return not (self.task_board_url or self.scoping_doc_url or self.folder_url)


class RecordStoreClient(Protocol):
    async def search(self, name: str) -> Sequence[RecordSummary]:
        """Return records whose name overlaps ``name`` in either direction."""
        ...

    async def get(self, record_id: str) -> RecordSummary: ...

    async def create(self, form: ProjectForm) -> RecordRef: ...

    async def update(self, record_id: str, form: ProjectForm) -> RecordRef: ...

    async def create_milestones(
        self,
        record_id: str,
        milestones: Sequence[Milestone],
    ) -> int: ...

    async def create_assignments(
        self,
        record_id: str,
        roles: Sequence[RoleAssignment],
    ) -> int: ...

    async def write_links(self, record_id: str, links: ResourceLinks) -> None: ...
