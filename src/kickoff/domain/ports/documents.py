"""Port for the document store platform."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


class DocumentKind(StrEnum):
    DOCUMENT = "document"
    PRESENTATION = "presentation"


@dataclass(frozen=True, slots=True, kw_only=True)
class FolderRef:
    folder_id: str
    name: str
    url: str


@dataclass(frozen=True, slots=True, kw_only=True)
class DocumentRef:
    document_id: str
    kind: DocumentKind
    url: str


class DocumentStoreClient(Protocol):
    async def find_folders_named(self, name: str) -> Sequence[FolderRef]:
        """Return candidate folders; callers apply the exact-name rule."""
        ...

    async def create_folder(self, name: str) -> FolderRef: ...

    async def create_from_template(
        self,
        template_id: str,
        folder_id: str,
        *,
        title: str,
        kind: DocumentKind,
        placeholders: Mapping[str, str],
    ) -> DocumentRef: ...

    async def trash_folder(self, folder_id: str) -> None: ...
