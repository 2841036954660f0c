"""Pydantic models describing the Google Drive API payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"


class GoogleBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class DriveFile(GoogleBaseModel):
    id: str
    name: str = ""
    mime_type: str | None = Field(default=None, alias="mimeType")
    web_view_link: str | None = Field(default=None, alias="webViewLink")


class FileListResponse(GoogleBaseModel):
    files: list[DriveFile] = Field(default_factory=list)
    next_page_token: str | None = Field(default=None, alias="nextPageToken")


class ErrorBody(GoogleBaseModel):
    code: int | None = None
    message: str = ""
    status: str | None = None


class ErrorResponse(GoogleBaseModel):
    error: ErrorBody


def describe_error(payload: object) -> str | None:
    if not isinstance(payload, dict) or not isinstance(payload.get("error"), dict):
        return None
    return ErrorResponse.model_validate(payload).error.message or None
