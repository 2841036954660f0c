"""Authenticated JSON requests shared by the platform clients."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from kickoff.adapters.http_resilience import ResilientClient
from kickoff.domain.errors import AuthError, TransportError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from httpx._types import QueryParamTypes

    from kickoff.config.http_resilience import ResilienceConfig
    from kickoff.domain.platforms import PlatformId

log = getLogger(__name__)

type TokenProvider = Callable[[], Awaitable[str]]
type ClientFactory = Callable[[ResilienceConfig], ResilientClient]
type ErrorDescriber = Callable[[object], str | None]


def default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


async def request_json(
    client: ResilientClient,
    method: str,
    url: str,
    *,
    platform: PlatformId,
    token_provider: TokenProvider,
    error_type: type[TransportError],
    describe_error: ErrorDescriber,
    params: QueryParamTypes | None = None,
    json: object = None,
) -> object:
    """Send one bearer-authenticated request and return the decoded JSON body.

    HTTP 401 becomes an ``AuthError``; any other failure becomes ``error_type``
    carrying the provider's message when the error payload has one.
    """

    token = await token_provider()
    headers = {"Authorization": f"Bearer {token}", "Accept": "application/json"}
    try:
        response = await client.request(method, url, params=params, json=json, headers=headers)
    except httpx.HTTPError as exc:
        raise error_type(platform, f"{platform.label} request failed: {exc}") from exc

    if response.status_code == httpx.codes.UNAUTHORIZED:
        raise AuthError(platform, f"{platform.label} rejected the access token")

    payload = _decode(response)
    if response.is_error:
        detail = describe_error(payload) if payload is not None else None
        message = detail or f"{platform.label} request failed with HTTP {response.status_code}"
        log.error("%s %s %s -> %s: %s", platform.label, method, url, response.status_code, message)
        raise error_type(platform, message, status_code=response.status_code)

    if payload is None:
        raise error_type(
            platform,
            f"{platform.label} returned a non-JSON response",
            status_code=response.status_code,
        )
    return payload


def _decode(response: httpx.Response) -> object | None:
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return None
