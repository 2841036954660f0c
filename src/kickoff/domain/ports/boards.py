"""Port for the task board platform."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import date

    from kickoff.domain.form import ProjectForm


@dataclass(frozen=True, slots=True, kw_only=True)
class BoardSummary:
    board_id: str
    name: str
    url: str


@dataclass(frozen=True, slots=True, kw_only=True)
class BoardRef:
    board_id: str
    url: str


@dataclass(frozen=True, slots=True, kw_only=True)
class BoardItem:
    """A task to add to a board, assigned by team member name."""

    name: str
    notes: str = ""
    due_date: date | None = None
    assignee_name: str | None = None


class TaskBoardClient(Protocol):
    async def typeahead_search(self, name: str) -> Sequence[BoardSummary]:
        """Return the platform's typeahead candidates; callers filter them."""
        ...

    async def create_from_template(self, template_id: str, form: ProjectForm) -> BoardRef: ...

    async def add_items(self, board_id: str, items: Sequence[BoardItem]) -> int: ...
