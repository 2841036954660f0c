"""Ports implemented by platform adapters."""

from __future__ import annotations

from .boards import BoardItem, BoardRef, BoardSummary, TaskBoardClient
from .credentials import TokenGrant, TokenRelay, TokenStore
from .documents import DocumentKind, DocumentRef, DocumentStoreClient, FolderRef
from .records import RecordRef, RecordStoreClient, RecordSummary, ResourceLinks

__all__ = [
    "BoardItem",
    "BoardRef",
    "BoardSummary",
    "DocumentKind",
    "DocumentRef",
    "DocumentStoreClient",
    "FolderRef",
    "RecordRef",
    "RecordStoreClient",
    "RecordSummary",
    "ResourceLinks",
    "TaskBoardClient",
    "TokenGrant",
    "TokenRelay",
    "TokenStore",
]
