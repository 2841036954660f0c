"""Payloads returned by the OAuth relay functions."""

from __future__ import annotations

import json
import re
from typing import Final

from pydantic import BaseModel, ConfigDict, ValidationError

_POST_MESSAGE: Final = re.compile(
    r"postMessage\(\s*(?P<body>\{.*?\})\s*,\s*['\"]\*['\"]\s*\)",
    re.S,
)
# Error pages embed a JavaScript object literal, not JSON.
_LITERAL_ERROR: Final = re.compile(r"error:\s*\"(?P<error>[^\"]*)\"")


class RelayBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TokenPayload(RelayBaseModel):
    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None


class RelayErrorPayload(RelayBaseModel):
    error: str
    error_description: str | None = None


class CallbackParseError(ValueError):
    """The callback page did not contain a token or error message."""


def parse_callback_page(html: str) -> TokenPayload | RelayErrorPayload:
    """Extract the message the relay's callback page posts to its opener."""

    match = _POST_MESSAGE.search(html)
    if match is None:
        msg = "callback page has no postMessage payload"
        raise CallbackParseError(msg)
    body = match.group("body")
    try:
        data = json.loads(body)
    except json.JSONDecodeError:
        literal = _LITERAL_ERROR.search(body)
        if literal is None:
            msg = "callback payload is neither JSON nor an error literal"
            raise CallbackParseError(msg) from None
        return RelayErrorPayload(error=literal.group("error") or "unknown_error")
    return parse_token_response(data)


def parse_token_response(data: object) -> TokenPayload | RelayErrorPayload:
    if isinstance(data, dict) and data.get("error"):
        return RelayErrorPayload.model_validate(
            {"error": str(data["error"]), "error_description": data.get("error_description")}
        )
    try:
        return TokenPayload.model_validate(data)
    except ValidationError as exc:
        msg = f"token payload is malformed: {exc}"
        raise CallbackParseError(msg) from exc
