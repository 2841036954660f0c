"""Platform probes: look up existing projects matching a candidate name.

A probe never errors for "not found". Transport and auth failures propagate so
the aggregator can record the platform as skipped.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, ClassVar, Protocol

from .matching import names_equal, names_overlap
from .platforms import PlatformId
from .probe import ProbeMatch, probe_result_from_matches

if TYPE_CHECKING:
    from .ports.boards import TaskBoardClient
    from .ports.documents import DocumentStoreClient
    from .ports.records import RecordStoreClient
    from .probe import ProbeResult

log = getLogger(__name__)


class PlatformProbe(Protocol):
    @property
    def platform(self) -> PlatformId: ...

    async def probe(self, candidate_name: str) -> ProbeResult: ...


@dataclass(slots=True)
class RecordStoreProbe:
    """Bidirectional, case-insensitive substring match on record names."""

    client: RecordStoreClient
    platform: ClassVar[PlatformId] = PlatformId.RECORD_STORE

    async def probe(self, candidate_name: str) -> ProbeResult:
        records = await self.client.search(candidate_name)
        matches = tuple(
            ProbeMatch(
                resource_id=record.record_id,
                label=record.name,
                url=record.url,
                created_at=record.created_at,
            )
            for record in records
            if names_overlap(candidate_name, record.name)
        )
        log.debug("Record store probe for %r: %d match(es)", candidate_name, len(matches))
        return probe_result_from_matches(matches)


@dataclass(slots=True)
class TaskBoardProbe:
    """Typeahead search, then the same bidirectional filter applied locally."""

    client: TaskBoardClient
    platform: ClassVar[PlatformId] = PlatformId.TASK_BOARD

    async def probe(self, candidate_name: str) -> ProbeResult:
        boards = await self.client.typeahead_search(candidate_name)
        matches = tuple(
            ProbeMatch(resource_id=board.board_id, label=board.name, url=board.url)
            for board in boards
            if names_overlap(candidate_name, board.name)
        )
        log.debug(
            "Task board probe for %r: %d of %d candidate(s) matched",
            candidate_name,
            len(matches),
            len(boards),
        )
        return probe_result_from_matches(matches)


@dataclass(slots=True)
class DocumentStoreProbe:
    """Folder search with a case-insensitive exact name match."""

    client: DocumentStoreClient
    platform: ClassVar[PlatformId] = PlatformId.DOCUMENT_STORE

    async def probe(self, candidate_name: str) -> ProbeResult:
        folders = await self.client.find_folders_named(candidate_name)
        matches = tuple(
            ProbeMatch(resource_id=folder.folder_id, label=folder.name, url=folder.url)
            for folder in folders
            if names_equal(candidate_name, folder.name)
        )
        log.debug("Document store probe for %r: %d match(es)", candidate_name, len(matches))
        return probe_result_from_matches(matches)
