"""Validation of operator-supplied links to existing resources.

Links are checked when the form is filled in, before a user-provided probe
result is ever built from them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final

from .errors import InputValidationError
from .platforms import PlatformId

_RECORD_URL: Final = re.compile(
    r"^https://airtable\.com/(?P<base>app\w+)/(?P<table>[^/?#]+)"
    r"(?:/(?P<view>viw\w+))?/(?P<record>rec\w+)"
)
_TASK_BOARD_URL: Final = re.compile(
    r"^https://app\.asana\.com/(?:0/(?:project/)?(?P<legacy>\d+)|1/\d+/project/(?P<gid>\d+))"
)
_DOCUMENT_URL: Final = re.compile(
    r"^https://docs\.google\.com/(?:document|presentation|spreadsheets)/d/(?P<id>[\w-]+)"
)
_FOLDER_URL: Final = re.compile(
    r"^https://drive\.google\.com/drive/(?:u/\d+/)?folders/(?P<id>[\w-]+)"
)


@dataclass(frozen=True, slots=True)
class LinkedResource:
    """An existing resource the operator pointed at by URL."""

    url: str
    resource_id: str


def parse_record_url(url: str) -> LinkedResource:
    value = url.strip()
    match = _RECORD_URL.match(value)
    if match is None:
        raise InputValidationError(
            "record URL", url, "expected https://airtable.com/<base>/<table>/<record>"
        )
    return LinkedResource(url=value, resource_id=match.group("record"))


def parse_task_board_url(url: str) -> LinkedResource:
    value = url.strip()
    match = _TASK_BOARD_URL.match(value)
    if match is None:
        raise InputValidationError(
            "task board URL", url, "expected https://app.asana.com/0/<project id>/..."
        )
    return LinkedResource(url=value, resource_id=match.group("legacy") or match.group("gid"))


def parse_document_url(url: str) -> LinkedResource:
    value = url.strip()
    match = _DOCUMENT_URL.match(value) or _FOLDER_URL.match(value)
    if match is None:
        raise InputValidationError(
            "document URL",
            url,
            "expected a docs.google.com document or drive.google.com folder link",
        )
    return LinkedResource(url=value, resource_id=match.group("id"))


URL_PARSERS: Final = {
    PlatformId.RECORD_STORE: parse_record_url,
    PlatformId.TASK_BOARD: parse_task_board_url,
    PlatformId.DOCUMENT_STORE: parse_document_url,
}


def parse_existing_url(platform: PlatformId, url: str) -> LinkedResource:
    return URL_PARSERS[platform](url)
