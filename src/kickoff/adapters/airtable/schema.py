"""Pydantic models describing the Airtable REST payloads."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field


class AirtableBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RecordPayload(AirtableBaseModel):
    id: str
    created_time: datetime | None = Field(default=None, alias="createdTime")
    fields: dict[str, object] = Field(default_factory=dict)

    def text_field(self, name: str) -> str:
        value = self.fields.get(name)
        return value if isinstance(value, str) else ""


class RecordListResponse(AirtableBaseModel):
    records: list[RecordPayload] = Field(default_factory=list)
    offset: str | None = None


class ErrorDetail(AirtableBaseModel):
    type: str | None = None
    message: str | None = None


class ErrorResponse(AirtableBaseModel):
    error: ErrorDetail | str


def describe_error(payload: object) -> str | None:
    if not isinstance(payload, dict) or "error" not in payload:
        return None
    error = ErrorResponse.model_validate(payload).error
    if isinstance(error, str):
        return error
    return error.message or error.type
