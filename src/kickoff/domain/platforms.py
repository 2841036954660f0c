"""Platform identifiers and the fixed processing order."""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class PlatformId(StrEnum):
    """External platforms a project is provisioned on."""

    RECORD_STORE = "record_store"
    TASK_BOARD = "task_board"
    DOCUMENT_STORE = "document_store"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS: Final[dict[PlatformId, str]] = {
    PlatformId.RECORD_STORE: "Airtable",
    PlatformId.TASK_BOARD: "Asana",
    PlatformId.DOCUMENT_STORE: "Google Drive",
}

# The record store goes first so later steps can link back onto its entry.
PROCESSING_ORDER: Final[tuple[PlatformId, ...]] = (
    PlatformId.RECORD_STORE,
    PlatformId.TASK_BOARD,
    PlatformId.DOCUMENT_STORE,
)
