"""HTTP client for Google Drive, Docs and Slides."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import BaseModel, ValidationError

from kickoff.adapters.platform_http import default_client_factory, request_json
from kickoff.config.google import GOOGLE_DOCS_API_URL, GOOGLE_DRIVE_API_URL, GOOGLE_SLIDES_API_URL
from kickoff.domain.errors import TransportError
from kickoff.domain.platforms import PlatformId
from kickoff.domain.ports.documents import DocumentKind, DocumentRef, FolderRef

from .schema import FOLDER_MIME_TYPE, DriveFile, FileListResponse, describe_error

if TYPE_CHECKING:
    from collections.abc import Mapping

    from httpx._types import QueryParamTypes

    from kickoff.adapters.http_resilience import ResilientClient
    from kickoff.adapters.platform_http import ClientFactory, TokenProvider
    from kickoff.config.google import GoogleConfig

log = getLogger(__name__)

ALL_DRIVES = {"supportsAllDrives": "true"}


class GoogleAPIError(TransportError):
    """Raised when a Google API returns an error or an unexpected payload."""


def folder_url(folder_id: str) -> str:
    return f"https://drive.google.com/drive/folders/{folder_id}"


def document_url(document_id: str, kind: DocumentKind) -> str:
    match kind:
        case DocumentKind.DOCUMENT:
            return f"https://docs.google.com/document/d/{document_id}/edit"
        case DocumentKind.PRESENTATION:
            return f"https://docs.google.com/presentation/d/{document_id}/edit"


def escape_query_literal(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def build_folder_query(name: str, parent_id: str | None = None) -> str:
    clauses = [
        f"name='{escape_query_literal(name)}'",
        f"mimeType='{FOLDER_MIME_TYPE}'",
        "trashed=false",
    ]
    if parent_id:
        clauses.append(f"'{escape_query_literal(parent_id)}' in parents")
    return " and ".join(clauses)


class GoogleDriveClient:
    """Document store backed by Google Drive (optionally a shared drive)."""

    def __init__(
        self,
        *,
        config: GoogleConfig,
        token_provider: TokenProvider,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._token_provider = token_provider
        self._client_factory = client_factory or default_client_factory

    async def find_folders_named(self, name: str) -> list[FolderRef]:
        params: dict[str, str] = {
            "q": build_folder_query(name.strip(), self._config.projects_folder_id),
            "includeItemsFromAllDrives": "true",
            "fields": "files(id,name,webViewLink)",
            **ALL_DRIVES,
        }
        if self._config.shared_drive_id:
            params["corpora"] = "drive"
            params["driveId"] = self._config.shared_drive_id
        async with self._client_factory(self._resilience) as client:
            payload = await self._request(
                client, "GET", f"{GOOGLE_DRIVE_API_URL}files", params=params
            )
        response = self._validate(FileListResponse, payload)
        log.debug("Drive search for %r returned %d folder(s)", name, len(response.files))
        return [self._folder_ref(item) for item in response.files]

    async def create_folder(self, name: str) -> FolderRef:
        parent = self._config.projects_folder_id or self._config.shared_drive_id
        body: dict[str, object] = {"name": name.strip(), "mimeType": FOLDER_MIME_TYPE}
        if parent:
            body["parents"] = [parent]
        async with self._client_factory(self._resilience) as client:
            payload = await self._request(
                client, "POST", f"{GOOGLE_DRIVE_API_URL}files", params=ALL_DRIVES, json=body
            )
        folder = self._folder_ref(self._validate(DriveFile, payload))
        log.info("Created Drive folder %s (%s)", folder.folder_id, folder.name)
        return folder

    async def create_from_template(
        self,
        template_id: str,
        folder_id: str,
        *,
        title: str,
        kind: DocumentKind,
        placeholders: Mapping[str, str],
    ) -> DocumentRef:
        """Copy ``template_id`` into the folder and fill in its placeholders."""

        async with self._client_factory(self._resilience) as client:
            payload = await self._request(
                client,
                "POST",
                f"{GOOGLE_DRIVE_API_URL}files/{template_id}/copy",
                params=ALL_DRIVES,
                json={"name": title, "parents": [folder_id]},
            )
            copy = self._validate(DriveFile, payload)
            if placeholders:
                await self._request(
                    client,
                    "POST",
                    _batch_update_url(copy.id, kind),
                    json={"requests": _replace_requests(placeholders)},
                )
        log.info("Created %s %s from template %s", kind, copy.id, template_id)
        return DocumentRef(document_id=copy.id, kind=kind, url=document_url(copy.id, kind))

    async def trash_folder(self, folder_id: str) -> None:
        async with self._client_factory(self._resilience) as client:
            await self._request(
                client,
                "PATCH",
                f"{GOOGLE_DRIVE_API_URL}files/{folder_id}",
                params=ALL_DRIVES,
                json={"trashed": True},
            )
        log.info("Moved Drive folder %s to the trash", folder_id)

    @staticmethod
    def _folder_ref(item: DriveFile) -> FolderRef:
        return FolderRef(
            folder_id=item.id,
            name=item.name,
            url=item.web_view_link or folder_url(item.id),
        )

    async def _request(
        self,
        client: ResilientClient,
        method: str,
        url: str,
        *,
        params: QueryParamTypes | None = None,
        json: object = None,
    ) -> object:
        return await request_json(
            client,
            method,
            url,
            platform=PlatformId.DOCUMENT_STORE,
            token_provider=self._token_provider,
            error_type=GoogleAPIError,
            describe_error=describe_error,
            params=params,
            json=json,
        )

    @staticmethod
    def _validate[M: BaseModel](model: type[M], payload: object) -> M:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise GoogleAPIError(
                PlatformId.DOCUMENT_STORE, f"Unexpected Google response payload: {exc}"
            ) from exc


def _batch_update_url(document_id: str, kind: DocumentKind) -> str:
    match kind:
        case DocumentKind.DOCUMENT:
            return f"{GOOGLE_DOCS_API_URL}documents/{document_id}:batchUpdate"
        case DocumentKind.PRESENTATION:
            return f"{GOOGLE_SLIDES_API_URL}presentations/{document_id}:batchUpdate"


def _replace_requests(placeholders: Mapping[str, str]) -> list[dict[str, object]]:
    return [
        {
            "replaceAllText": {
                "containsText": {"text": token, "matchCase": True},
                "replaceText": value,
            }
        }
        for token, value in placeholders.items()
    ]
