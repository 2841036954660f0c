"""Google Drive document store adapter."""

from __future__ import annotations

from .client import (
    GoogleAPIError,
    GoogleDriveClient,
    build_folder_query,
    document_url,
    folder_url,
)

__all__ = [
    "GoogleAPIError",
    "GoogleDriveClient",
    "build_folder_query",
    "document_url",
    "folder_url",
]
