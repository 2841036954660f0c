"""Airtable record store adapter."""

from __future__ import annotations

from .client import AirtableAPIError, AirtableClient, build_search_formula
from .schema import RecordListResponse, RecordPayload

__all__ = [
    "AirtableAPIError",
    "AirtableClient",
    "RecordListResponse",
    "RecordPayload",
    "build_search_formula",
]
