from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from kickoff.domain.aggregator import DuplicateAggregator
from kickoff.domain.errors import InputValidationError, NotConnectedError
from kickoff.domain.form import ExistingUrls
from kickoff.domain.platforms import PlatformId
from kickoff.domain.ports.boards import BoardSummary
from kickoff.domain.ports.documents import FolderRef
from kickoff.domain.ports.records import RecordSummary
from kickoff.domain.probe import (
    MatchedProbe,
    NotFoundProbe,
    SkippedProbe,
    SkipReason,
    UserProvidedProbe,
)
from kickoff.domain.probes import DocumentStoreProbe, RecordStoreProbe, TaskBoardProbe
from tests.helpers.fakes import NOW, FakeDocumentStore, FakeRecordStore, FakeTaskBoard


def _aggregator(
    records: FakeRecordStore,
    boards: FakeTaskBoard,
    documents: FakeDocumentStore,
    *,
    enabled: bool = True,
) -> DuplicateAggregator:
    return DuplicateAggregator(
        probes=[RecordStoreProbe(records), TaskBoardProbe(boards), DocumentStoreProbe(documents)],
        enabled=enabled,
        clock=lambda: NOW,
    )


def test_check_all_collects_matches_from_every_platform() -> None:
    created = datetime(2023, 6, 1, tzinfo=UTC)
    records = FakeRecordStore(
        records=[
            RecordSummary(
                record_id="rec1",
                name="Water Quality Dashboard",
                url="https://airtable.com/appX/tblX/rec1",
                created_at=created,
            ),
            RecordSummary(record_id="rec2", name="Air Monitoring", url="https://x/rec2"),
        ]
    )
    boards = FakeTaskBoard(
        boards=[
            BoardSummary(board_id="77", name="Water Quality", url="https://app.asana.com/0/77"),
        ]
    )
    documents = FakeDocumentStore(
        folders=[
            FolderRef(folder_id="f1", name="Water Quality", url="https://drive/f1"),
            FolderRef(folder_id="f2", name="water quality dashboard", url="https://drive/f2"),
        ]
    )

    report = asyncio.run(
        _aggregator(records, boards, documents).check_all("  Water Quality Dashboard ")
    )

    assert report.candidate_name == "Water Quality Dashboard"
    assert report.checked_at == NOW
    assert isinstance(report.record_store, MatchedProbe)
    assert [match.resource_id for match in report.record_store.matches] == ["rec1"]
    assert report.record_store.created_at == created
    assert report.task_board.matched_resource_id == "77"
    assert report.document_store.matched_resource_id == "f2"
    assert report.has_duplicates


def test_user_provided_links_suppress_probing() -> None:
    records = FakeRecordStore()
    boards = FakeTaskBoard()
    documents = FakeDocumentStore()
    urls = ExistingUrls.parse(
        record_store="https://airtable.com/appX/tblX/recLinked",
        task_board="https://app.asana.com/0/1209/list",
        document_store="https://drive.google.com/drive/folders/fLinked",
    )

    report = asyncio.run(_aggregator(records, boards, documents).check_all("Dashboard", urls))

    assert records.calls == []
    assert boards.calls == []
    assert documents.calls == []
    for _, result in report.items():
        assert isinstance(result, UserProvidedProbe)
        assert result.found
        assert result.user_provided
    assert report.task_board.matched_resource_id == "1209"
    assert not report.has_duplicates


def test_probe_failures_are_isolated_per_platform() -> None:
    class DisconnectedBoard(FakeTaskBoard):
        async def typeahead_search(self, name: str) -> list[BoardSummary]:
            raise NotConnectedError(PlatformId.TASK_BOARD)

    records = FakeRecordStore(fail_on={"search"})
    documents = FakeDocumentStore()

    report = asyncio.run(
        _aggregator(records, DisconnectedBoard(), documents).check_all("Dashboard")
    )

    assert isinstance(report.record_store, SkippedProbe)
    assert report.record_store.reason is SkipReason.UNAVAILABLE
    assert isinstance(report.task_board, SkippedProbe)
    assert report.task_board.reason is SkipReason.NOT_CONNECTED
    assert isinstance(report.document_store, NotFoundProbe)
    assert report.skipped_platforms == (PlatformId.RECORD_STORE, PlatformId.TASK_BOARD)


def test_disabled_checks_make_no_calls() -> None:
    records = FakeRecordStore()
    boards = FakeTaskBoard()
    documents = FakeDocumentStore()

    report = asyncio.run(
        _aggregator(records, boards, documents, enabled=False).check_all("Dashboard")
    )

    assert records.calls == boards.calls == documents.calls == []
    assert all(
        isinstance(result, SkippedProbe) and result.reason is SkipReason.CHECK_DISABLED
        for _, result in report.items()
    )


def test_missing_probe_is_reported_as_not_configured() -> None:
    aggregator = DuplicateAggregator(
        probes=[RecordStoreProbe(FakeRecordStore())], clock=lambda: NOW
    )

    report = asyncio.run(aggregator.check_all("Dashboard"))

    assert isinstance(report.task_board, SkippedProbe)
    assert report.task_board.reason is SkipReason.NOT_CONFIGURED
    assert isinstance(report.record_store, NotFoundProbe)


def test_blank_name_is_rejected_before_any_probe() -> None:
    records = FakeRecordStore()

    with pytest.raises(InputValidationError):
        asyncio.run(
            _aggregator(records, FakeTaskBoard(), FakeDocumentStore()).check_all("   ")
        )

    assert records.calls == []
