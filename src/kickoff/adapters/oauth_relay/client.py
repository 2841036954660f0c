"""Client for the serverless relay that holds the OAuth client secrets."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

import httpx

from kickoff.adapters.platform_http import default_client_factory
from kickoff.domain.errors import CredentialRelayError
from kickoff.domain.platforms import PlatformId
from kickoff.domain.ports.credentials import TokenGrant

from .schema import CallbackParseError, RelayErrorPayload, parse_callback_page, parse_token_response

if TYPE_CHECKING:
    from kickoff.adapters.platform_http import ClientFactory
    from kickoff.config.oauth_relay import OAuthRelayConfig

    from .schema import TokenPayload

log = getLogger(__name__)

SERVICE_NAMES: Final[dict[PlatformId, str]] = {
    PlatformId.RECORD_STORE: "airtable",
    PlatformId.TASK_BOARD: "asana",
    PlatformId.DOCUMENT_STORE: "google",
}


def _is_transient_status(status_code: int) -> bool:
    return status_code == httpx.codes.TOO_MANY_REQUESTS or status_code >= 500


class OAuthRelayClient:
    """Exchanges authorization codes and refresh tokens through the relay.

    Failures are reported as ``CredentialRelayError``. Network errors, rate
    limiting and relay-side 5xx responses are transient; a provider refusal
    (HTTP 400 or an ``error`` member) is not.
    """

    def __init__(
        self,
        *,
        config: OAuthRelayConfig,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory or default_client_factory

    async def refresh(self, platform: PlatformId, refresh_token: str) -> TokenGrant:
        service = SERVICE_NAMES[platform]
        response = await self._send(
            platform,
            "POST",
            f"{service}-refresh",
            json={"refresh_token": refresh_token},
        )
        try:
            data = response.json()
        except ValueError:
            data = None

        if data is None:
            raise CredentialRelayError(
                platform,
                "invalid_response",
                description=f"relay returned HTTP {response.status_code} without JSON",
                transient=True,
            )
        if _is_transient_status(response.status_code):
            raise CredentialRelayError(
                platform,
                "relay_unavailable",
                description=_error_text(data) or f"HTTP {response.status_code}",
                transient=True,
            )

        try:
            payload = parse_token_response(data)
        except CallbackParseError as exc:
            if response.is_error:
                raise CredentialRelayError(
                    platform, "invalid_grant", description=str(exc)
                ) from exc
            raise CredentialRelayError(
                platform, "invalid_response", description=str(exc), transient=True
            ) from exc
        if isinstance(payload, RelayErrorPayload):
            raise CredentialRelayError(
                platform, payload.error, description=payload.error_description
            )
        if response.is_error:
            raise CredentialRelayError(
                platform, "invalid_grant", description=f"HTTP {response.status_code}"
            )
        log.debug("Relay refreshed %s token", platform.label)
        return _grant(payload)

    async def exchange_code(
        self, platform: PlatformId, code: str, *, state: str | None = None
    ) -> TokenGrant:
        service = SERVICE_NAMES[platform]
        params = {"code": code}
        if state:
            params["state"] = state
        response = await self._send(platform, "GET", f"{service}-callback", params=params)
        try:
            payload = parse_callback_page(response.text)
        except CallbackParseError as exc:
            raise CredentialRelayError(
                platform,
                "invalid_response",
                description=str(exc),
                transient=_is_transient_status(response.status_code),
            ) from exc
        if isinstance(payload, RelayErrorPayload):
            raise CredentialRelayError(
                platform,
                payload.error,
                description=payload.error_description,
                transient=_is_transient_status(response.status_code),
            )
        log.debug("Relay exchanged authorization code for %s", platform.label)
        return _grant(payload)

    async def _send(
        self,
        platform: PlatformId,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: object = None,
    ) -> httpx.Response:
        try:
            async with self._client_factory(self._config.resilience) as client:
                return await client.request(method, path, params=params, json=json)
        except httpx.HTTPError as exc:
            log.warning("Token relay request for %s failed: %s", platform.label, exc)
            raise CredentialRelayError(
                platform, "network_error", description=str(exc), transient=True
            ) from exc


def _grant(payload: TokenPayload) -> TokenGrant:
    return TokenGrant(
        access_token=payload.access_token,
        refresh_token=payload.refresh_token or None,
        expires_in=payload.expires_in,
    )


def _error_text(data: object) -> str | None:
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return None
